"""
CSV Export / Import

One row per line item, so a transaction with three items spans three rows
sharing the same Transaction ID. Files exported here import back
unchanged; files from older versions without the "Created At" column are
still accepted.

DESIGN DECISION: Import is forgiving at the row level and strict at the
file level. A wrong header rejects the whole file (it is probably not one
of ours); a single bad row is skipped so one typo doesn't lose a year of
books.
"""

import csv
import io
import math
from datetime import date, datetime, time
from typing import Iterable

import structlog

from bookkeeper.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionLineItem,
    TransactionType,
    coerce_timestamp,
)
from bookkeeper.reports.filters import local_date, local_datetime


logger = structlog.get_logger(__name__)

LEGACY_HEADERS = [
    "Transaction ID",
    "Date",
    "Type",
    "Overall Description",
    "Category",
    "Payment Method",
    "Item Description",
    "Item Quantity",
    "Item Unit Price",
    "Item Line Total",
]
HEADERS = LEGACY_HEADERS + ["Created At"]

# Older exports called sales "income"
LEGACY_TYPES = {"income": TransactionType.SALE.value}

IMPORT_TIME = time(12, 0)


class CsvFormatError(ValueError):
    """The file is not a transaction export we can read."""
    pass


def _number(value) -> str:
    """Render numbers without a trailing '.0' for whole values."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def export_transactions_csv(transactions: Iterable[Transaction]) -> str:
    """
    Render transactions as CSV text, oldest first.

    Raises:
        CsvFormatError: If there is nothing to export
    """
    ordered = sorted(transactions, key=lambda t: local_datetime(t.date))
    if not ordered:
        raise CsvFormatError("No transactions to export")

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADERS)

    for transaction in ordered:
        created_at = transaction.created_at or transaction.date
        for item in transaction.items:
            writer.writerow([
                transaction.id,
                local_date(transaction.date).isoformat(),
                transaction.type.value,
                transaction.description,
                transaction.category,
                transaction.payment_method.value,
                item.description,
                _number(item.quantity),
                _number(item.unit_price),
                _number(item.line_total),
                created_at.isoformat(),
            ])

    return buffer.getvalue()


def _parse_float(text: str):
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) else value


def import_transactions_csv(text: str) -> list[Transaction]:
    """
    Parse an exported CSV back into transactions.

    Rows are grouped by Transaction ID in order of first appearance.
    Rows with an unknown type or payment method, a malformed date or a
    non-numeric quantity or price are skipped.

    Raises:
        CsvFormatError: If the file is empty or the header doesn't match
    """
    rows = [row for row in csv.reader(io.StringIO(text.lstrip("\ufeff").strip())) if row]
    if len(rows) < 2:
        raise CsvFormatError("CSV file is empty or has no data rows.")

    header = [h.strip() for h in rows[0]]
    if header == HEADERS:
        width = len(HEADERS)
    elif header == LEGACY_HEADERS:
        width = len(LEGACY_HEADERS)
    else:
        raise CsvFormatError(
            "CSV headers do not match the expected format. "
            "Please use a file exported from this app."
        )

    grouped: dict[str, dict] = {}
    skipped = 0

    for row in rows[1:]:
        values = [v.strip() for v in row]
        if len(values) != width or not values[0]:
            skipped += 1
            continue

        transaction_id = values[0]
        record = grouped.get(transaction_id)

        if record is None:
            kind = values[2].lower()
            kind = LEGACY_TYPES.get(kind, kind)
            if kind not in {t.value for t in TransactionType}:
                skipped += 1
                continue
            try:
                day = date.fromisoformat(values[1])
            except ValueError:
                skipped += 1
                continue

            method = values[5]
            if method not in {m.value for m in PaymentMethod}:
                skipped += 1
                continue

            transaction_date = datetime.combine(day, IMPORT_TIME)
            created_at = transaction_date
            if width == len(HEADERS):
                parsed = coerce_timestamp(values[10])
                if isinstance(parsed, datetime):
                    created_at = parsed

            record = {
                "id": transaction_id,
                "type": kind,
                "date": transaction_date,
                "description": values[3],
                "category": values[4],
                "payment_method": method,
                "created_at": created_at,
                "items": [],
            }
            grouped[transaction_id] = record

        quantity = _parse_float(values[7])
        unit_price = _parse_float(values[8])
        if quantity is None or unit_price is None:
            skipped += 1
            continue

        record["items"].append(TransactionLineItem(
            id=f"{transaction_id}-{len(record['items'])}",
            description=values[6],
            quantity=quantity,
            unit_price=unit_price,
        ))

    if skipped:
        logger.info("csv_rows_skipped", count=skipped)

    # A transaction whose every item row was rejected is not imported
    return [Transaction(**record) for record in grouped.values() if record["items"]]
