"""
Query Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC.
A caller (a chat assistant, a script) describes what it wants as a
StructuredQuery; this engine answers it from the stored ledger only.
Nothing is estimated and "no data" is reported as such.

Unlike the interactive filters, queries are strict about dates: a
malformed date is an error in the result, not a silently dropped bound.
"""

from datetime import date
from typing import Optional

from bookkeeper.models.report import QueryResult, StructuredQuery
from bookkeeper.models.transaction import Transaction
from bookkeeper.reports.aggregator import aggregate, by_category, rank_top
from bookkeeper.reports.filters import FilterCriteria, filter_transactions
from bookkeeper.reports.views import summary_stats
from bookkeeper.services.storage import LedgerStorageInterface


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


def parse_query_date(value: str, field: str) -> date:
    """Strict YYYY-MM-DD parsing."""
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise QueryExecutionError(
            f"Invalid {field} '{value}'. Please use YYYY-MM-DD."
        )


class QueryExecutor:
    """
    Executes structured queries against ledger storage.

    GUARANTEES:
    - Only returns real data from storage
    - Never invents or estimates
    - Clear "no data found" if nothing matches
    """

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    async def execute(self, query: StructuredQuery) -> QueryResult:
        """Execute a structured query and return results."""
        try:
            start = parse_query_date(query.start_date, "start date")
            end = parse_query_date(query.end_date, "end date")
            snapshot = await self._storage.load_all()
            criteria = FilterCriteria(start_date=start, end_date=end)

            if query.query_type == "summary":
                return self._execute_summary(query, snapshot.transactions, criteria)
            elif query.query_type == "top_categories":
                return self._execute_top_categories(query, snapshot.transactions, criteria)
            raise QueryExecutionError(f"Unsupported query type: {query.query_type}")

        except Exception as e:
            return QueryResult(
                query_id=query.query_id,
                success=False,
                error_message=str(e),
                data_found=False,
                result_count=0,
                query_description=f"Query failed: {e}",
            )

    def _execute_summary(
        self,
        query: StructuredQuery,
        transactions: list[Transaction],
        criteria: FilterCriteria,
    ) -> QueryResult:
        """Totals of sales and expenses in the date range."""
        stats = summary_stats(transactions, criteria)
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=stats.transaction_count > 0,
            result_count=stats.transaction_count,
            aggregation_result={
                "total_sales": stats.total_sales,
                "total_expenses": stats.total_expenses,
                "net_profit": stats.net_profit,
                "transaction_count": stats.transaction_count,
            },
            query_description="Summary " + self._date_range_str(
                criteria.start_date, criteria.end_date
            ),
        )

    def _execute_top_categories(
        self,
        query: StructuredQuery,
        transactions: list[Transaction],
        criteria: FilterCriteria,
    ) -> QueryResult:
        """The expense categories with the largest totals."""
        expenses = [t for t in filter_transactions(transactions, criteria) if t.is_expense]
        ranked = rank_top(aggregate(expenses, by_category), query.limit)
        results = [{"category": name, "total": total} for name, total in ranked]
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(results) > 0,
            result_count=len(results),
            results=results,
            query_description=f"Top {query.limit} expense categories " + self._date_range_str(
                criteria.start_date, criteria.end_date
            ),
        )

    def _date_range_str(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from == date_to:
                return f"on {date_from.strftime('%d %b %Y')}"
            elif date_from.month == date_to.month and date_from.year == date_to.year:
                return f"in {date_from.strftime('%B %Y')}"
            elif date_from.year == date_to.year:
                return f"from {date_from.strftime('%b')} to {date_to.strftime('%b %Y')}"
            else:
                return f"from {date_from.strftime('%b %Y')} to {date_to.strftime('%b %Y')}"
        return ""
