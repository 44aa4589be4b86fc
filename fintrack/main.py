"""Main entry point for the finance tracker."""
import logging
import sys
from datetime import date

from fintrack import reports, services
from fintrack.core import db
from fintrack.core.dates import month_start
from fintrack.core.portfolio import portfolio_overview
from fintrack.core.real_estate import compute_real_estate_metrics
from fintrack.core.statistics import EVOLUTION_MONTHS, monthly_evolution
from fintrack.logging_config import configure_logging

logger = logging.getLogger("fintrack")


def main(db_path: str | None = None):
    """Initialize the database and print portfolio and budget reports."""
    configure_logging()

    conn = db.init_db(db_path)
    logger.info(f"Database initialized at: {db.get_db_path(db_path)}")
    logger.info(f"Base currency: {db.get_setting(conn, 'base_currency')}")
    logger.info(f"Default quote currency: {db.get_setting(conn, 'default_quote_currency')}")

    tables = conn.execute("""
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = 'main'
        ORDER BY table_name
    """).fetchall()
    for (table,) in tables:
        count = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        logger.info(f"  - {table} ({count} rows)")

    try:
        real_estates = db.load_real_estates(conn)
        overview = portfolio_overview(db.load_assets(conn), real_estates)
        print("\n## Portfolio\n")
        print(f"Total value: {overview.total_value:,.2f}  (P/L {overview.period_change_pct:.2f}%)")
        print(reports.portfolio_frame(overview).to_string(index=False))

        for holding in real_estates:
            metrics = compute_real_estate_metrics(holding.inputs)
            payback = f"{metrics.payback_years} years" if metrics.payback_years is not None else "never"
            print(f"\n{holding.name}: cash flow {metrics.cashflow_net}/month, payback {payback}, "
                  f"break-even month {reports.break_even_month(metrics)}")

        today = date.today()
        household = services.dashboard(conn, today)
        print("\n## Household\n")
        print(f"Net worth: {household['netWorth']:,.2f}  (cash {household['totalBalance']:,.2f})")
        print(f"This month: income {household['monthlyIncome']:,.2f}, "
              f"expenses {household['monthlyExpenses']:,.2f}, savings rate {household['savingsRate']}%")
        transactions = db.load_transactions(conn, since=month_start(today, -(EVOLUTION_MONTHS - 1)))
        print(reports.evolution_frame(monthly_evolution(transactions, today)).to_string())

        stats = services.statistics(conn, today)
        print("\n## Spending by category (6 months)\n")
        print(reports.breakdown_frame(stats["categoryData"], "Category").to_string(index=False))

        suggestions = services.budget_suggestions(conn, today)
        print("\n## Budget suggestions (3-month average)\n")
        print(reports.budget_frame(suggestions, db.load_category_names(conn)).to_string(index=False))
    finally:
        conn.close()


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
