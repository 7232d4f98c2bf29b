"""Typed, immutable aggregates produced from an OFX document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ofx_typed.enums import Severity

if TYPE_CHECKING:  # pragma: no cover - type-checking imports only
    from collections.abc import Iterator
    from datetime import datetime
    from decimal import Decimal

    from ofx_typed.enums import (
        AccountType,
        DataType,
        Encoding,
        Security,
        TransactionType,
        UnrecognizedCode,
        Version,
    )


@dataclass(frozen=True, slots=True)
class Header:
    """OFX 1.x SGML headers preceding the ``<OFX>`` body."""

    ofxheader: int
    data: DataType
    version: Version
    security: Security
    encoding: Encoding
    charset: str
    compression: str
    oldfileuid: str
    newfileuid: str


@dataclass(frozen=True, slots=True)
class Status:
    """``<STATUS>`` aggregate attached to every response."""

    code: int
    severity: Severity | UnrecognizedCode
    message: str | None = None

    def is_success(self) -> bool:
        """Return ``True`` unless the server reported an ``ERROR`` severity."""

        return self.severity is not Severity.ERROR


@dataclass(frozen=True, slots=True)
class Currency:
    """``<CURRENCY>``/``<ORIGCURRENCY>`` override of the statement currency."""

    rate: Decimal
    symbol: str


@dataclass(frozen=True, slots=True)
class Payee:
    name: str
    address1: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class Transaction:
    """Single ``<STMTTRN>`` entry."""

    transaction_type: TransactionType | UnrecognizedCode
    date_posted: datetime
    amount: Decimal
    fitid: str | None = None
    date_user: datetime | None = None
    date_available: datetime | None = None
    name: str | None = None
    payee: Payee | None = None
    memo: str | None = None
    check_number: str | None = None
    reference_number: str | None = None
    currency: Currency | None = None
    original_currency: Currency | None = None


@dataclass(frozen=True, slots=True)
class BankTransactionList:
    """``<BANKTRANLIST>``: transactions in the order the institution reported them."""

    start: datetime | None
    end: datetime | None
    transactions: tuple[Transaction, ...] = ()
    skipped: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)


@dataclass(frozen=True, slots=True)
class Balance:
    amount: Decimal
    as_of: datetime


@dataclass(frozen=True, slots=True)
class BankAccount:
    """``<BANKACCTFROM>`` identity."""

    bank_id: str
    account_id: str
    account_type: AccountType | UnrecognizedCode
    branch_id: str | None = None
    account_key: str | None = None


@dataclass(frozen=True, slots=True)
class CreditCardAccount:
    """``<CCACCTFROM>`` identity."""

    account_id: str
    account_key: str | None = None


@dataclass(frozen=True, slots=True)
class Statement:
    """``<STMTRS>`` or ``<CCSTMTRS>`` snapshot of one account."""

    currency: str
    account: BankAccount | CreditCardAccount
    ledger_balance: Balance | None = None
    available_balance: Balance | None = None
    transactions: BankTransactionList | None = None
    marketing_info: str | None = None


@dataclass(frozen=True, slots=True)
class StatementTransactionResponse:
    """``<STMTTRNRS>``/``<CCSTMTTRNRS>`` wrapper; ``statement`` is ``None`` only for failed requests."""

    transaction_uid: str
    status: Status
    statement: Statement | None = None


@dataclass(frozen=True, slots=True)
class FinancialInstitution:
    organization: str
    fid: str | None = None


@dataclass(frozen=True, slots=True)
class SignOnResponse:
    """``<SONRS>`` aggregate."""

    status: Status
    server_date: datetime
    language: str
    financial_institution: FinancialInstitution | None = None


@dataclass(frozen=True, slots=True)
class SignOnMessageSet:
    response: SignOnResponse


@dataclass(frozen=True, slots=True)
class BankMessageSet:
    responses: tuple[StatementTransactionResponse, ...]


@dataclass(frozen=True, slots=True)
class CreditCardMessageSet:
    responses: tuple[StatementTransactionResponse, ...]


MessageSet = SignOnMessageSet | BankMessageSet | CreditCardMessageSet


@dataclass(frozen=True, slots=True)
class Body:
    """``<OFX>`` content; each message set is absent when the file omits it."""

    sign_on: SignOnMessageSet | None = None
    bank: BankMessageSet | None = None
    credit_card: CreditCardMessageSet | None = None

    @property
    def message_sets(self) -> tuple[MessageSet, ...]:
        """Return the present message sets (sign-on, bank, credit card order)."""

        return tuple(item for item in (self.sign_on, self.bank, self.credit_card) if item is not None)


@dataclass(frozen=True, slots=True)
class Document:
    """Root value returned by :func:`ofx_typed.parse`."""

    header: Header
    body: Body

    @property
    def statements(self) -> tuple[Statement, ...]:
        """Return every statement carried by the bank and credit card message sets."""

        found: list[Statement] = []
        for message_set in (self.body.bank, self.body.credit_card):
            if message_set is None:
                continue
            found.extend(resp.statement for resp in message_set.responses if resp.statement is not None)
        return tuple(found)
