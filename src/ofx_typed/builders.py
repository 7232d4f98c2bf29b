"""Builders turning OFX element subtrees into typed aggregates.

Every ``build_*`` function receives the element of its own aggregate. Required
fields raise :class:`~ofx_typed.errors.OFXFieldError` subclasses, optional
fields degrade to ``None``. Absent child aggregates become ``None`` while a
present but broken child aggregate propagates its error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from ofx_typed.config import DEFAULT_SETTINGS
from ofx_typed.enums import AccountType, Severity, TransactionType
from ofx_typed.errors import MissingFieldError, OFXFieldError
from ofx_typed.fields import (
    children,
    get_amount,
    get_code,
    get_date,
    get_int,
    get_optional_date,
    get_optional_text,
    get_text,
)
from ofx_typed.models import (
    Balance,
    BankAccount,
    BankMessageSet,
    BankTransactionList,
    CreditCardAccount,
    CreditCardMessageSet,
    Currency,
    FinancialInstitution,
    Payee,
    SignOnMessageSet,
    SignOnResponse,
    Statement,
    StatementTransactionResponse,
    Status,
    Transaction,
)

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Callable
    from xml.etree.ElementTree import Element

    from ofx_typed.config import ParserSettings

T = TypeVar('T')

LOGGER = logging.getLogger(__name__)


def _child(element: Element, name: str, builder: Callable[[Element], T]) -> T | None:
    """Build the optional ``name`` child aggregate, or return ``None`` when absent."""

    node = element.find(name)
    if node is None:
        return None
    return builder(node)


def _required_child(element: Element, name: str, builder: Callable[[Element], T]) -> T:
    node = element.find(name)
    if node is None:
        raise MissingFieldError(element.tag, name)
    return builder(node)


def build_status(element: Element) -> Status:
    return Status(
        code=get_int(element, 'CODE'),
        severity=get_code(element, 'SEVERITY', Severity),
        message=get_optional_text(element, 'MESSAGE'),
    )


def build_currency(element: Element) -> Currency:
    return Currency(rate=get_amount(element, 'CURRATE'), symbol=get_text(element, 'CURSYM'))


def build_payee(element: Element) -> Payee:
    return Payee(
        name=get_text(element, 'NAME'),
        address1=get_optional_text(element, 'ADDR1'),
        city=get_optional_text(element, 'CITY'),
        state=get_optional_text(element, 'STATE'),
        postal_code=get_optional_text(element, 'POSTALCODE'),
        country=get_optional_text(element, 'COUNTRY'),
        phone=get_optional_text(element, 'PHONE'),
    )


def build_transaction(element: Element) -> Transaction:
    """Build a ``<STMTTRN>``; type, posting date and amount are mandatory."""

    return Transaction(
        transaction_type=get_code(element, 'TRNTYPE', TransactionType),
        date_posted=get_date(element, 'DTPOSTED'),
        amount=get_amount(element, 'TRNAMT'),
        fitid=get_optional_text(element, 'FITID'),
        date_user=get_optional_date(element, 'DTUSER'),
        date_available=get_optional_date(element, 'DTAVAIL'),
        name=get_optional_text(element, 'NAME'),
        payee=_child(element, 'PAYEE', build_payee),
        memo=get_optional_text(element, 'MEMO'),
        check_number=get_optional_text(element, 'CHECKNUM'),
        reference_number=get_optional_text(element, 'REFNUM'),
        currency=_child(element, 'CURRENCY', build_currency),
        original_currency=_child(element, 'ORIGCURRENCY', build_currency),
    )


def build_transaction_list(element: Element, settings: ParserSettings = DEFAULT_SETTINGS) -> BankTransactionList:
    """Build a ``<BANKTRANLIST>`` keeping ``<STMTTRN>`` entries in document order.

    By default the first broken transaction aborts the whole list. With
    ``settings.skip_malformed_transactions`` the broken entry is dropped and
    its error message kept in ``skipped``.
    """

    transactions: list[Transaction] = []
    skipped: list[str] = []
    for position, node in enumerate(children(element, 'STMTTRN')):
        try:
            transactions.append(build_transaction(node))
        except OFXFieldError as exc:
            if not settings.skip_malformed_transactions:
                raise
            LOGGER.warning('Skipping transaction #%d: %s', position, exc)
            skipped.append(str(exc))
    return BankTransactionList(
        start=get_optional_date(element, 'DTSTART'),
        end=get_optional_date(element, 'DTEND'),
        transactions=tuple(transactions),
        skipped=tuple(skipped),
    )


def build_balance(element: Element) -> Balance:
    return Balance(amount=get_amount(element, 'BALAMT'), as_of=get_date(element, 'DTASOF'))


def build_bank_account(element: Element) -> BankAccount:
    return BankAccount(
        bank_id=get_text(element, 'BANKID'),
        account_id=get_text(element, 'ACCTID'),
        account_type=get_code(element, 'ACCTTYPE', AccountType),
        branch_id=get_optional_text(element, 'BRANCHID'),
        account_key=get_optional_text(element, 'ACCTKEY'),
    )


def build_credit_card_account(element: Element) -> CreditCardAccount:
    return CreditCardAccount(
        account_id=get_text(element, 'ACCTID'),
        account_key=get_optional_text(element, 'ACCTKEY'),
    )


def build_bank_statement(element: Element, settings: ParserSettings = DEFAULT_SETTINGS) -> Statement:
    """Build a ``<STMTRS>``; the ledger balance is optional for bank statements."""

    return Statement(
        currency=get_text(element, 'CURDEF'),
        account=_required_child(element, 'BANKACCTFROM', build_bank_account),
        ledger_balance=_child(element, 'LEDGERBAL', build_balance),
        available_balance=_child(element, 'AVAILBAL', build_balance),
        transactions=_child(element, 'BANKTRANLIST', lambda node: build_transaction_list(node, settings)),
        marketing_info=get_optional_text(element, 'MKTGINFO'),
    )


def build_credit_card_statement(element: Element, settings: ParserSettings = DEFAULT_SETTINGS) -> Statement:
    """Build a ``<CCSTMTRS>``; unlike bank statements the ledger balance is required."""

    return Statement(
        currency=get_text(element, 'CURDEF'),
        account=_required_child(element, 'CCACCTFROM', build_credit_card_account),
        ledger_balance=_required_child(element, 'LEDGERBAL', build_balance),
        available_balance=_child(element, 'AVAILBAL', build_balance),
        transactions=_child(element, 'BANKTRANLIST', lambda node: build_transaction_list(node, settings)),
        marketing_info=get_optional_text(element, 'MKTGINFO'),
    )


def build_statement_response(
    element: Element,
    statement_tag: str,
    statement_builder: Callable[[Element], Statement],
) -> StatementTransactionResponse:
    """Build a statement transaction response wrapper.

    A successful status requires the statement; a failed one may omit it.
    """

    status = _required_child(element, 'STATUS', build_status)
    node = element.find(statement_tag)
    if node is None and status.is_success():
        raise MissingFieldError(element.tag, statement_tag)
    return StatementTransactionResponse(
        transaction_uid=get_text(element, 'TRNUID'),
        status=status,
        statement=statement_builder(node) if node is not None else None,
    )


def _build_responses(
    element: Element,
    response_tag: str,
    statement_tag: str,
    statement_builder: Callable[[Element], Statement],
) -> tuple[StatementTransactionResponse, ...]:
    nodes = children(element, response_tag)
    if not nodes:
        raise MissingFieldError(element.tag, response_tag)
    return tuple(build_statement_response(node, statement_tag, statement_builder) for node in nodes)


def build_bank_message_set(element: Element, settings: ParserSettings = DEFAULT_SETTINGS) -> BankMessageSet:
    return BankMessageSet(
        responses=_build_responses(element, 'STMTTRNRS', 'STMTRS', lambda node: build_bank_statement(node, settings)),
    )


def build_credit_card_message_set(
    element: Element,
    settings: ParserSettings = DEFAULT_SETTINGS,
) -> CreditCardMessageSet:
    return CreditCardMessageSet(
        responses=_build_responses(
            element,
            'CCSTMTTRNRS',
            'CCSTMTRS',
            lambda node: build_credit_card_statement(node, settings),
        ),
    )


def build_financial_institution(element: Element) -> FinancialInstitution:
    return FinancialInstitution(organization=get_text(element, 'ORG'), fid=get_optional_text(element, 'FID'))


def build_sign_on_response(element: Element) -> SignOnResponse:
    return SignOnResponse(
        status=_required_child(element, 'STATUS', build_status),
        server_date=get_date(element, 'DTSERVER'),
        language=get_text(element, 'LANGUAGE'),
        financial_institution=_child(element, 'FI', build_financial_institution),
    )


def build_sign_on_message_set(element: Element) -> SignOnMessageSet:
    return SignOnMessageSet(response=_required_child(element, 'SONRS', build_sign_on_response))
