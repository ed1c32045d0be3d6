"""
Report Views

Read-only summaries composed from the filter and the aggregator:
- Summary stats (sales, expenses, net profit)
- Daily sales/expenses series for the dashboard chart
- Expense breakdown by category, with an item-level search total
- Top items by expense
- Funds flow (cash vs bank)

Every function here is a pure function of (transactions, criteria).
Nothing is cached; recomputing on each call is cheap at the size of one
user's ledger.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from bookkeeper.calculator import line_total
from bookkeeper.models.report import (
    CategoryBreakdown,
    CategoryTotal,
    DailyPoint,
    FundsFlow,
    ItemTotal,
    SummaryStats,
)
from bookkeeper.models.transaction import Transaction, TransactionType
from bookkeeper.reports.aggregator import (
    BANK_IN,
    BANK_OUT,
    CASH_IN,
    CASH_OUT,
    aggregate,
    by_category,
    by_flow_bucket,
    by_local_date,
    by_type,
    rank_top,
)
from bookkeeper.reports.filters import FilterCriteria, filter_transactions


CHART_WINDOW_DAYS = 14
TOP_ITEMS_LIMIT = 10


def _expenses(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.EXPENSE]


def day_label(day: date) -> str:
    """'Jan 5' style label used on the chart axis."""
    return f"{day:%b} {day.day}"


def summary_stats(
    transactions: Iterable[Transaction],
    criteria: Optional[FilterCriteria] = None,
) -> SummaryStats:
    """Total sales, total expenses and net profit."""
    selected = filter_transactions(transactions, criteria)
    totals = aggregate(selected, by_type)
    total_sales = totals.get(TransactionType.SALE, 0.0)
    total_expenses = totals.get(TransactionType.EXPENSE, 0.0)
    return SummaryStats(
        total_sales=total_sales,
        total_expenses=total_expenses,
        net_profit=total_sales - total_expenses,
        transaction_count=len(selected),
    )


def daily_series(
    transactions: Iterable[Transaction],
    days: int = CHART_WINDOW_DAYS,
    today: Optional[date] = None,
) -> list[DailyPoint]:
    """
    Sales and expenses per day for the last `days` days, oldest first.

    The window ends today (inclusive). Days without activity are present
    with zeros; transactions outside the window are ignored.
    """
    transactions = list(transactions)
    today = today or date.today()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    in_window = set(window)

    def bucket(kind: TransactionType):
        def key(transaction: Transaction):
            if transaction.type != kind:
                return None
            day = by_local_date(transaction)
            return day if day in in_window else None
        return key

    sales = aggregate(transactions, bucket(TransactionType.SALE))
    expenses = aggregate(transactions, bucket(TransactionType.EXPENSE))

    return [
        DailyPoint(
            day=day,
            label=day_label(day),
            sales=sales.get(day, 0.0),
            expenses=expenses.get(day, 0.0),
        )
        for day in window
    ]


def category_breakdown(
    transactions: Iterable[Transaction],
    criteria: Optional[FilterCriteria] = None,
    item_search: Optional[str] = None,
) -> CategoryBreakdown:
    """
    Expense totals per category, largest first.

    item_search, when given, adds the running total of every expense line
    item whose description contains the term (case-insensitive). That
    total is independent of the category rows.
    """
    expenses = _expenses(filter_transactions(transactions, criteria))
    ranked = rank_top(aggregate(expenses, by_category))

    breakdown = CategoryBreakdown(
        categories=[CategoryTotal(category=name, total=total) for name, total in ranked],
        total=sum((total for _, total in ranked), 0.0),
    )

    if item_search is not None and item_search.strip():
        needle = item_search.lower()
        breakdown.item_search_term = item_search
        breakdown.item_search_total = sum(
            (
                line_total(item)
                for t in expenses
                for item in t.items
                if needle in item.description.lower()
            ),
            0.0,
        )

    return breakdown


def top_items(
    transactions: Iterable[Transaction],
    criteria: Optional[FilterCriteria] = None,
    category: Optional[str] = None,
    limit: int = TOP_ITEMS_LIMIT,
) -> list[ItemTotal]:
    """
    The line items the business spent most on.

    Items are grouped by description, ignoring case and surrounding
    whitespace; the first spelling seen is the one displayed. Items with
    a blank description are skipped.
    """
    expenses = _expenses(filter_transactions(transactions, criteria))
    if category is not None:
        expenses = [t for t in expenses if t.category == category]

    names: dict[str, str] = {}
    totals: dict[str, float] = {}
    for transaction in expenses:
        for item in transaction.items:
            description = item.description.strip()
            if not description:
                continue
            key = description.lower()
            names.setdefault(key, description)
            totals[key] = totals.get(key, 0.0) + line_total(item)

    return [
        ItemTotal(name=names[key], total=total)
        for key, total in rank_top(totals, limit)
    ]


def funds_flow(
    transactions: Iterable[Transaction],
    criteria: Optional[FilterCriteria] = None,
) -> FundsFlow:
    """
    Cash and bank movement.

    Sales add to the balance of their payment method and expenses
    subtract from it.
    """
    buckets = aggregate(filter_transactions(transactions, criteria), by_flow_bucket)
    cash_in = buckets.get(CASH_IN, 0.0)
    cash_out = buckets.get(CASH_OUT, 0.0)
    bank_in = buckets.get(BANK_IN, 0.0)
    bank_out = buckets.get(BANK_OUT, 0.0)
    return FundsFlow(
        net_cash_flow=cash_in - cash_out,
        net_bank_flow=bank_in - bank_out,
        cash_in=cash_in,
        cash_out=cash_out,
        bank_in=bank_in,
        bank_out=bank_out,
    )


class ReportService:
    """
    All report views bound to one ledger snapshot.

    Construct a new one whenever the snapshot changes; it holds no state
    beyond the transactions it was given.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        chart_window_days: int = CHART_WINDOW_DAYS,
        top_items_limit: int = TOP_ITEMS_LIMIT,
    ):
        self._transactions = tuple(transactions)
        self._chart_window_days = chart_window_days
        self._top_items_limit = top_items_limit

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    def filter(self, criteria: Optional[FilterCriteria] = None) -> list[Transaction]:
        return filter_transactions(self._transactions, criteria)

    def summary(self, criteria: Optional[FilterCriteria] = None) -> SummaryStats:
        return summary_stats(self._transactions, criteria)

    def daily_chart(self, today: Optional[date] = None) -> list[DailyPoint]:
        return daily_series(self._transactions, self._chart_window_days, today)

    def expense_breakdown(
        self,
        criteria: Optional[FilterCriteria] = None,
        item_search: Optional[str] = None,
    ) -> CategoryBreakdown:
        return category_breakdown(self._transactions, criteria, item_search)

    def top_items(
        self,
        criteria: Optional[FilterCriteria] = None,
        category: Optional[str] = None,
    ) -> list[ItemTotal]:
        return top_items(self._transactions, criteria, category, self._top_items_limit)

    def funds_flow(self, criteria: Optional[FilterCriteria] = None) -> FundsFlow:
        return funds_flow(self._transactions, criteria)
