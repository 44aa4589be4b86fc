"""Keyword-based auto-categorization of transaction descriptions."""
from typing import Iterable, List, Sequence

from fintrack.core.models import CategoryKeyword, CategoryRef


def sort_keywords(keywords: Iterable[CategoryKeyword]) -> List[CategoryKeyword]:
    """Longest keywords first so "uber eats" wins over "uber"."""
    return sorted(keywords, key=lambda kw: len(kw.keyword), reverse=True)


def _match(description: str | None, ordered: Sequence[CategoryKeyword]) -> CategoryRef | None:
    if not description:
        return None
    normalized = description.lower()
    for kw in ordered:
        if kw.keyword and kw.keyword.lower() in normalized:
            return kw.category
    return None


def auto_categorize(description: str | None, keywords: Iterable[CategoryKeyword]) -> CategoryRef | None:
    """Return the category of the first (longest) keyword found in the description."""
    return _match(description, sort_keywords(keywords))


def auto_categorize_batch(
    descriptions: Sequence[str | None],
    keywords: Iterable[CategoryKeyword],
) -> List[CategoryRef | None]:
    """Categorize many descriptions, sorting the keyword list once."""
    if not descriptions:
        return []
    ordered = sort_keywords(keywords)
    return [_match(description, ordered) for description in descriptions]
