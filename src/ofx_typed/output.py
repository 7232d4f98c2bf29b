"""Output utilities for flattening parsed statements into CSV."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Iterator
from pathlib import Path

from ofx_typed.enums import UnrecognizedCode
from ofx_typed.models import Document, Statement, Transaction

CSV_FIELDS = ['account_id', 'fitid', 'date_posted', 'type', 'amount', 'name', 'memo']


def _type_code(transaction: Transaction) -> str:
    kind = transaction.transaction_type
    if isinstance(kind, UnrecognizedCode):
        return kind.raw
    return kind.value


def iter_rows(statements: Iterable[Statement]) -> Iterator[dict[str, str]]:
    """Yield one CSV row per transaction, statement by statement, in document order."""

    for statement in statements:
        if statement.transactions is None:
            continue
        for txn in statement.transactions:
            yield {
                'account_id': statement.account.account_id,
                'fitid': txn.fitid or '',
                'date_posted': txn.date_posted.isoformat(),
                'type': _type_code(txn),
                'amount': str(txn.amount),
                'name': txn.name or (txn.payee.name if txn.payee else ''),
                'memo': txn.memo or '',
            }


def build_csv_payload(document: Document) -> str:
    """Serialize every transaction of ``document`` into a CSV string."""

    if not isinstance(document, Document):
        raise TypeError('invalid OFX document')

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS)
    writer.writeheader()
    writer.writerows(iter_rows(document.statements))
    return buffer.getvalue()


def write_output(document: Document, *, output_path: Path | str | None) -> str:
    """Write the CSV payload to ``output_path`` if provided and return the CSV string."""

    csv_payload = build_csv_payload(document)
    if output_path:
        path = Path(output_path)
        with path.open('w', encoding='utf-8', newline='') as handle:
            handle.write(csv_payload)
    return csv_payload
