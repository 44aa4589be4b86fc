"""DuckDB initialization, schema management and row-to-model loaders."""
import logging
import os
from datetime import date
from enum import Enum
from pathlib import Path
from typing import List

import duckdb

from fintrack.core.models import (
    Account,
    AssetHolding,
    CategoryKeyword,
    CategoryRef,
    Compounding,
    ExpenseEntry,
    PositionLot,
    RealEstateHolding,
    RealEstateInputs,
    Transaction,
    TransactionType,
    ValuationMode,
)
from fintrack.core.money import to_decimal, to_decimal_or_none

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "base_currency": "EUR",
    "default_quote_currency": "USD",
    "default_interest_mode": "simple_annuel",
}

_SEQUENCES = [
    "seq_accounts",
    "seq_categories",
    "seq_keywords",
    "seq_transactions",
    "seq_assets",
    "seq_positions",
    "seq_real_estate",
]

_REAL_ESTATE_FIELDS = [
    "purchase_price",
    "notary_fees",
    "initial_works",
    "down_payment",
    "loan_monthly_payment",
    "loan_insurance_monthly",
    "rent_monthly",
    "vacancy_rate_pct",
    "non_recoverable_charges_monthly",
    "property_tax_yearly",
    "insurance_yearly",
    "maintenance_reserve_monthly",
]


def get_db_path(custom_path: str | None = None) -> Path:
    """Get the database file path."""
    if custom_path:
        return Path(custom_path)
    env_path = os.getenv("FINTRACK_DB_PATH")
    if env_path:
        return Path(env_path)
    return Path(__file__).parent.parent.parent / "data" / "fintrack.duckdb"


def init_db(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Initialize database and create schema if needed."""
    path = get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug(f"Opening database at {path}")
    conn = duckdb.connect(str(path))
    _create_schema(conn)
    return conn


def _create_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create all tables if they don't exist."""
    for name in _SEQUENCES:
        conn.execute(f"CREATE SEQUENCE IF NOT EXISTS {name} START 1")

    # Settings table
    conn.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key VARCHAR PRIMARY KEY,
            value VARCHAR NOT NULL
        )
    """)
    for key, value in DEFAULT_SETTINGS.items():
        conn.execute("""
            INSERT INTO settings (key, value) VALUES (?, ?)
            ON CONFLICT DO NOTHING
        """, [key, value])

    conn.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_accounts'),
            name VARCHAR NOT NULL,
            type VARCHAR NOT NULL,
            currency VARCHAR NOT NULL,
            balance DECIMAL(18, 2) DEFAULT 0,
            active BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Categories nest one level: parent_id points at a top-level category
    conn.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_categories'),
            name VARCHAR NOT NULL,
            emoji VARCHAR,
            parent_id INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS category_keywords (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_keywords'),
            category_id INTEGER NOT NULL,
            keyword VARCHAR NOT NULL,
            FOREIGN KEY (category_id) REFERENCES categories(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_transactions'),
            account_id INTEGER NOT NULL,
            category_id INTEGER,
            ts DATE NOT NULL,
            type VARCHAR NOT NULL CHECK (type IN ('income', 'expense', 'transfer')),
            amount DECIMAL(18, 2) NOT NULL,
            description VARCHAR,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (account_id) REFERENCES accounts(id),
            FOREIGN KEY (category_id) REFERENCES categories(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS investment_assets (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_assets'),
            name VARCHAR NOT NULL,
            category VARCHAR NOT NULL,
            symbol VARCHAR,
            platform VARCHAR,
            currency VARCHAR NOT NULL DEFAULT 'EUR',
            valuation_mode VARCHAR NOT NULL DEFAULT 'marché',
            base_symbol VARCHAR,
            quote_symbol VARCHAR,
            quantity DECIMAL(18, 8),
            current_price DECIMAL(18, 8),
            manual_price DECIMAL(18, 8),
            current_value DECIMAL(18, 2),
            amount_invested DECIMAL(18, 2),
            base_amount DECIMAL(18, 2),
            annual_rate DECIMAL(8, 4),
            start_date DATE,
            capitalization_mode VARCHAR DEFAULT 'annuelle',
            account_id INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (account_id) REFERENCES accounts(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS positions (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_positions'),
            asset_id INTEGER NOT NULL,
            quantity DECIMAL(18, 8) NOT NULL,
            cost_basis DECIMAL(18, 8) NOT NULL,
            paid_amount DECIMAL(18, 2),
            paid_currency VARCHAR,
            purchase_date DATE,
            fx_rate_to_quote DECIMAL(18, 8),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (asset_id) REFERENCES investment_assets(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS real_estate_investments (
            id INTEGER PRIMARY KEY DEFAULT nextval('seq_real_estate'),
            name VARCHAR NOT NULL,
            address VARCHAR,
            property_type VARCHAR,
            purchase_price DECIMAL(18, 2) NOT NULL,
            notary_fees DECIMAL(18, 2) DEFAULT 0,
            initial_works DECIMAL(18, 2) DEFAULT 0,
            down_payment DECIMAL(18, 2) DEFAULT 0,
            loan_monthly_payment DECIMAL(18, 2) DEFAULT 0,
            loan_insurance_monthly DECIMAL(18, 2) DEFAULT 0,
            rent_monthly DECIMAL(18, 2) DEFAULT 0,
            vacancy_rate_pct DECIMAL(8, 4) DEFAULT 0,
            non_recoverable_charges_monthly DECIMAL(18, 2) DEFAULT 0,
            property_tax_yearly DECIMAL(18, 2) DEFAULT 0,
            insurance_yearly DECIMAL(18, 2) DEFAULT 0,
            maintenance_reserve_monthly DECIMAL(18, 2),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    conn.commit()


def get_setting(conn: duckdb.DuckDBPyConnection, key: str) -> str | None:
    """Get a setting value by key."""
    result = conn.execute("SELECT value FROM settings WHERE key = ?", [key]).fetchone()
    return result[0] if result else None


def set_setting(conn: duckdb.DuckDBPyConnection, key: str, value: str) -> None:
    """Set a setting value."""
    conn.execute("""
        INSERT INTO settings (key, value) VALUES (?, ?)
        ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
    """, [key, value])
    conn.commit()


# --- inserts -----------------------------------------------------------------

def _insert(conn: duckdb.DuckDBPyConnection, table: str, values: dict) -> int:
    values = {k: v.value if isinstance(v, Enum) else v for k, v in values.items()}
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    row = conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING id",
        list(values.values()),
    ).fetchone()
    return row[0]


def add_account(conn: duckdb.DuckDBPyConnection, account: Account) -> int:
    return _insert(conn, "accounts", {
        "name": account.name,
        "type": account.type,
        "currency": account.currency,
        "balance": account.balance,
        "active": account.active,
    })


def add_category(
    conn: duckdb.DuckDBPyConnection,
    name: str,
    parent_id: int | None = None,
    emoji: str | None = None,
) -> int:
    return _insert(conn, "categories", {"name": name, "emoji": emoji, "parent_id": parent_id})


def add_keyword(conn: duckdb.DuckDBPyConnection, category_id: int, keyword: str) -> int:
    return _insert(conn, "category_keywords", {"category_id": category_id, "keyword": keyword})


def add_transaction(conn: duckdb.DuckDBPyConnection, txn: Transaction) -> int:
    return _insert(conn, "transactions", {
        "account_id": txn.account_id,
        "category_id": txn.category_id,
        "ts": txn.ts,
        "type": TransactionType(txn.type).value,
        "amount": txn.amount,
        "description": txn.description,
    })


def add_asset(conn: duckdb.DuckDBPyConnection, name: str, category: str, **fields) -> int:
    """Insert an investment asset; `fields` are column names of investment_assets."""
    return _insert(conn, "investment_assets", {"name": name, "category": category, **fields})


def add_position(conn: duckdb.DuckDBPyConnection, asset_id: int, quantity, cost_basis, **fields) -> int:
    return _insert(conn, "positions", {
        "asset_id": asset_id,
        "quantity": quantity,
        "cost_basis": cost_basis,
        **fields,
    })


def add_real_estate(conn: duckdb.DuckDBPyConnection, name: str, inputs: RealEstateInputs, **fields) -> int:
    values = {"name": name, **fields}
    for column in _REAL_ESTATE_FIELDS:
        values[column] = getattr(inputs, column)
    return _insert(conn, "real_estate_investments", values)


# --- loaders -----------------------------------------------------------------

def load_positions(
    conn: duckdb.DuckDBPyConnection,
    asset_id: int,
    asset_currency: str | None = None,
) -> List[PositionLot]:
    """
    Purchase lots of an asset, oldest first.

    A lot recorded without a paid amount is taken as cost_basis * quantity,
    and without a paid currency as the asset currency (EUR if unknown).
    """
    rows = conn.execute("""
        SELECT id, quantity, cost_basis, paid_amount, paid_currency,
               purchase_date, fx_rate_to_quote, created_at
        FROM positions
        WHERE asset_id = ?
        ORDER BY COALESCE(purchase_date, CAST(created_at AS DATE)) ASC, id ASC
    """, [asset_id]).fetchall()

    lots = []
    for pos_id, quantity, cost_basis, paid_amount, paid_currency, purchase_date, fx_rate, created_at in rows:
        quantity = to_decimal(quantity)
        cost_basis = to_decimal(cost_basis)
        if not paid_amount:
            paid_amount = cost_basis * quantity
        lots.append(PositionLot(
            id=pos_id,
            quantity=quantity,
            cost_basis=cost_basis,
            paid_amount=to_decimal(paid_amount),
            paid_currency=paid_currency or asset_currency or "EUR",
            purchase_date=purchase_date or created_at,
            fx_rate_to_quote=to_decimal(fx_rate) if fx_rate else None,
        ))
    return lots


_ASSET_COLUMNS = """
    id, name, category, valuation_mode, symbol, platform, currency,
    quantity, amount_invested, current_price, manual_price, current_value,
    base_amount, annual_rate, start_date, capitalization_mode,
    base_symbol, quote_symbol,
    (SELECT balance FROM accounts WHERE accounts.id = investment_assets.account_id) AS account_balance
"""


def _row_to_asset(conn: duckdb.DuckDBPyConnection, row) -> AssetHolding:
    (asset_id, name, category, valuation_mode, symbol, platform, currency,
     quantity, amount_invested, current_price, manual_price, current_value,
     base_amount, annual_rate, start_date, capitalization_mode,
     base_symbol, quote_symbol, account_balance) = row

    return AssetHolding(
        id=asset_id,
        name=name,
        category=category,
        valuation_mode=ValuationMode(valuation_mode),
        symbol=symbol,
        base_symbol=base_symbol,
        quote_symbol=quote_symbol,
        platform=platform,
        currency=currency,
        quantity=to_decimal_or_none(quantity),
        positions=tuple(load_positions(conn, asset_id, currency)),
        amount_invested=to_decimal_or_none(amount_invested),
        current_price=to_decimal_or_none(current_price),
        manual_price=to_decimal_or_none(manual_price),
        current_value=to_decimal_or_none(current_value),
        base_amount=to_decimal_or_none(base_amount),
        annual_rate=to_decimal_or_none(annual_rate),
        start_date=start_date,
        compounding=Compounding(capitalization_mode or Compounding.ANNUAL.value),
        account_balance=to_decimal_or_none(account_balance),
    )


def load_asset(conn: duckdb.DuckDBPyConnection, asset_id: int) -> AssetHolding | None:
    row = conn.execute(
        f"SELECT {_ASSET_COLUMNS} FROM investment_assets WHERE id = ?", [asset_id]
    ).fetchone()
    return _row_to_asset(conn, row) if row else None


def load_assets(conn: duckdb.DuckDBPyConnection) -> List[AssetHolding]:
    rows = conn.execute(f"SELECT {_ASSET_COLUMNS} FROM investment_assets ORDER BY id").fetchall()
    return [_row_to_asset(conn, row) for row in rows]


def _row_to_real_estate(row) -> RealEstateHolding:
    re_id, name, address, property_type, *amounts = row
    values = dict(zip(_REAL_ESTATE_FIELDS, amounts))
    reserve = values.pop("maintenance_reserve_monthly")
    inputs = RealEstateInputs(
        **{k: to_decimal(v or 0) for k, v in values.items()},
        maintenance_reserve_monthly=to_decimal_or_none(reserve),
    )
    return RealEstateHolding(id=re_id, name=name, inputs=inputs, subtitle=address or property_type)


_REAL_ESTATE_SELECT = (
    "SELECT id, name, address, property_type, "
    + ", ".join(_REAL_ESTATE_FIELDS)
    + " FROM real_estate_investments"
)


def load_real_estate(conn: duckdb.DuckDBPyConnection, investment_id: int) -> RealEstateHolding | None:
    row = conn.execute(f"{_REAL_ESTATE_SELECT} WHERE id = ?", [investment_id]).fetchone()
    return _row_to_real_estate(row) if row else None


def load_real_estates(conn: duckdb.DuckDBPyConnection) -> List[RealEstateHolding]:
    rows = conn.execute(f"{_REAL_ESTATE_SELECT} ORDER BY id").fetchall()
    return [_row_to_real_estate(row) for row in rows]


def load_expenses_since(conn: duckdb.DuckDBPyConnection, since: date) -> List[ExpenseEntry]:
    """Expense transactions on or after `since`, with their category's parent."""
    rows = conn.execute("""
        SELECT t.amount, c.id, c.parent_id
        FROM transactions t
        LEFT JOIN categories c ON c.id = t.category_id
        WHERE t.type = 'expense' AND t.ts >= ?
        ORDER BY t.ts, t.id
    """, [since]).fetchall()
    return [
        ExpenseEntry(amount=to_decimal(amount), category_id=category_id, parent_id=parent_id)
        for amount, category_id, parent_id in rows
    ]


def load_keywords(conn: duckdb.DuckDBPyConnection) -> List[CategoryKeyword]:
    rows = conn.execute("""
        SELECT k.keyword, c.id, c.name, c.emoji, c.parent_id
        FROM category_keywords k
        JOIN categories c ON c.id = k.category_id
        ORDER BY k.id
    """).fetchall()
    return [
        CategoryKeyword(
            keyword=keyword,
            category=CategoryRef(id=cat_id, name=name, emoji=emoji, parent_id=parent_id),
        )
        for keyword, cat_id, name, emoji, parent_id in rows
    ]


def load_category_names(conn: duckdb.DuckDBPyConnection) -> dict:
    return dict(conn.execute("SELECT id, name FROM categories").fetchall())


def load_accounts(conn: duckdb.DuckDBPyConnection) -> List[Account]:
    rows = conn.execute(
        "SELECT id, name, type, currency, balance, active FROM accounts ORDER BY id"
    ).fetchall()
    return [
        Account(id=acc_id, name=name, type=kind, currency=currency,
                balance=to_decimal(balance or 0), active=bool(active))
        for acc_id, name, kind, currency, balance, active in rows
    ]


def load_transactions(conn: duckdb.DuckDBPyConnection, since: date | None = None) -> List[Transaction]:
    """Transactions dated on or after `since` (all of them without it), oldest first."""
    query = """
        SELECT id, account_id, ts, type, amount, category_id, description
        FROM transactions
    """
    params = []
    if since is not None:
        query += " WHERE ts >= ?"
        params.append(since)
    rows = conn.execute(query + " ORDER BY ts, id", params).fetchall()
    return [
        Transaction(id=txn_id, account_id=account_id, ts=ts, type=TransactionType(kind),
                    amount=to_decimal(amount), category_id=category_id, description=description)
        for txn_id, account_id, ts, kind, amount, category_id, description in rows
    ]
