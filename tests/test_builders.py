import xml.etree.ElementTree as ET
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from ofx_typed.builders import (
    build_bank_message_set,
    build_bank_statement,
    build_credit_card_statement,
    build_sign_on_message_set,
    build_statement_response,
    build_status,
    build_transaction,
    build_transaction_list,
)
from ofx_typed.config import ParserSettings
from ofx_typed.enums import AccountType, Severity, TransactionType, UnrecognizedCode
from ofx_typed.errors import MalformedFieldError, MissingFieldError
from ofx_typed.models import BankAccount, Currency

TRANSACTION = (
    '<STMTTRN><TRNTYPE>{trntype}</TRNTYPE><DTPOSTED>20240102</DTPOSTED>'
    '<TRNAMT>{amount}</TRNAMT><FITID>{fitid}</FITID></STMTTRN>'
)


def _element(markup: str) -> ET.Element:
    return ET.fromstring(markup)


def _txn(fitid: str, *, trntype: str = 'DEBIT', amount: str = '-1.00') -> str:
    return TRANSACTION.format(trntype=trntype, amount=amount, fitid=fitid)


def test_build_transaction_required_fields() -> None:
    txn = build_transaction(_element(_txn('X1', amount='-20.5')))
    assert txn.transaction_type is TransactionType.DEBIT
    assert txn.date_posted == datetime(2024, 1, 2, tzinfo=UTC)
    assert txn.amount == Decimal('-20.5')
    assert txn.fitid == 'X1'
    assert txn.name is None
    assert txn.payee is None
    assert txn.currency is None


def test_build_transaction_optional_aggregates() -> None:
    markup = (
        '<STMTTRN><TRNTYPE>POS</TRNTYPE><DTPOSTED>20240102</DTPOSTED><TRNAMT>-3.50</TRNAMT>'
        '<PAYEE><NAME>Corner Cafe</NAME><CITY>Springfield</CITY></PAYEE>'
        '<ORIGCURRENCY><CURRATE>0.9</CURRATE><CURSYM>EUR</CURSYM></ORIGCURRENCY>'
        '<REFNUM>R-9</REFNUM></STMTTRN>'
    )
    txn = build_transaction(_element(markup))
    assert txn.payee is not None
    assert txn.payee.name == 'Corner Cafe'
    assert txn.payee.city == 'Springfield'
    assert txn.payee.phone is None
    assert txn.original_currency == Currency(rate=Decimal('0.9'), symbol='EUR')
    assert txn.reference_number == 'R-9'
    assert txn.fitid is None


def test_build_transaction_broken_payee_propagates() -> None:
    markup = (
        '<STMTTRN><TRNTYPE>POS</TRNTYPE><DTPOSTED>20240102</DTPOSTED><TRNAMT>-3.50</TRNAMT>'
        '<PAYEE><CITY>Springfield</CITY></PAYEE></STMTTRN>'
    )
    with pytest.raises(MissingFieldError) as excinfo:
        build_transaction(_element(markup))
    assert (excinfo.value.aggregate, excinfo.value.field) == ('PAYEE', 'NAME')


def test_build_transaction_unknown_type_falls_back() -> None:
    txn = build_transaction(_element(_txn('X1', trntype='HOLD')))
    assert txn.transaction_type == UnrecognizedCode(raw='HOLD')


def test_build_transaction_list_keeps_order() -> None:
    markup = f'<BANKTRANLIST><DTSTART>20240101</DTSTART>{_txn("B")}{_txn("A")}{_txn("C")}</BANKTRANLIST>'
    result = build_transaction_list(_element(markup))
    assert [txn.fitid for txn in result] == ['B', 'A', 'C']
    assert result.start == datetime(2024, 1, 1, tzinfo=UTC)
    assert result.end is None
    assert result.skipped == ()


def test_build_transaction_list_is_fail_fast_by_default() -> None:
    markup = f'<BANKTRANLIST>{_txn("A")}{_txn("B", amount="abc")}{_txn("C")}</BANKTRANLIST>'
    with pytest.raises(MalformedFieldError) as excinfo:
        build_transaction_list(_element(markup))
    assert excinfo.value.field == 'TRNAMT'
    assert excinfo.value.raw_value == 'abc'


def test_build_transaction_list_can_skip_broken_entries() -> None:
    markup = f'<BANKTRANLIST>{_txn("A")}{_txn("B", amount="abc")}{_txn("C")}</BANKTRANLIST>'
    settings = ParserSettings(skip_malformed_transactions=True)
    result = build_transaction_list(_element(markup), settings)
    assert [txn.fitid for txn in result] == ['A', 'C']
    assert len(result.skipped) == 1
    assert 'TRNAMT' in result.skipped[0]


def test_build_status() -> None:
    markup = '<STATUS><CODE>2000</CODE><SEVERITY>ERROR</SEVERITY><MESSAGE>Bad</MESSAGE></STATUS>'
    status = build_status(_element(markup))
    assert status.code == 2000
    assert status.severity is Severity.ERROR
    assert status.message == 'Bad'
    assert not status.is_success()


def test_build_status_rejects_non_numeric_code() -> None:
    with pytest.raises(MalformedFieldError):
        build_status(_element('<STATUS><CODE>zero</CODE><SEVERITY>INFO</SEVERITY></STATUS>'))


BANK_STATEMENT = (
    '<STMTRS><CURDEF>USD</CURDEF>'
    '<BANKACCTFROM><BANKID>111</BANKID><ACCTID>222</ACCTID><ACCTTYPE>SAVINGS</ACCTTYPE></BANKACCTFROM>'
    '</STMTRS>'
)


def test_build_bank_statement_minimal() -> None:
    statement = build_bank_statement(_element(BANK_STATEMENT))
    assert statement.currency == 'USD'
    assert statement.account == BankAccount(bank_id='111', account_id='222', account_type=AccountType.SAVINGS)
    assert statement.ledger_balance is None
    assert statement.transactions is None


def test_build_bank_statement_requires_account() -> None:
    with pytest.raises(MissingFieldError) as excinfo:
        build_bank_statement(_element('<STMTRS><CURDEF>USD</CURDEF></STMTRS>'))
    assert (excinfo.value.aggregate, excinfo.value.field) == ('STMTRS', 'BANKACCTFROM')


def test_build_credit_card_statement_requires_ledger_balance() -> None:
    markup = '<CCSTMTRS><CURDEF>USD</CURDEF><CCACCTFROM><ACCTID>9</ACCTID></CCACCTFROM></CCSTMTRS>'
    with pytest.raises(MissingFieldError) as excinfo:
        build_credit_card_statement(_element(markup))
    assert excinfo.value.field == 'LEDGERBAL'


def test_failed_response_may_omit_statement() -> None:
    markup = '<STMTTRNRS><TRNUID>1</TRNUID><STATUS><CODE>2000</CODE><SEVERITY>ERROR</SEVERITY></STATUS></STMTTRNRS>'
    response = build_statement_response(_element(markup), 'STMTRS', build_bank_statement)
    assert response.statement is None
    assert response.transaction_uid == '1'


def test_successful_response_requires_statement() -> None:
    markup = '<STMTTRNRS><TRNUID>1</TRNUID><STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS></STMTTRNRS>'
    with pytest.raises(MissingFieldError) as excinfo:
        build_statement_response(_element(markup), 'STMTRS', build_bank_statement)
    assert (excinfo.value.aggregate, excinfo.value.field) == ('STMTTRNRS', 'STMTRS')


def test_bank_message_set_collects_every_response() -> None:
    response = (
        '<STMTTRNRS><TRNUID>{uid}</TRNUID><STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>'
        f'{BANK_STATEMENT}</STMTTRNRS>'
    )
    markup = f'<BANKMSGSRSV1>{response.format(uid="1")}{response.format(uid="2")}</BANKMSGSRSV1>'
    message_set = build_bank_message_set(_element(markup))
    assert [resp.transaction_uid for resp in message_set.responses] == ['1', '2']


def test_bank_message_set_requires_a_response() -> None:
    with pytest.raises(MissingFieldError):
        build_bank_message_set(_element('<BANKMSGSRSV1></BANKMSGSRSV1>'))


def test_build_sign_on_message_set() -> None:
    markup = (
        '<SIGNONMSGSRSV1><SONRS><STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>'
        '<DTSERVER>20240131120000</DTSERVER><LANGUAGE>ENG</LANGUAGE></SONRS></SIGNONMSGSRSV1>'
    )
    response = build_sign_on_message_set(_element(markup)).response
    assert response.server_date == datetime(2024, 1, 31, 12, tzinfo=UTC)
    assert response.language == 'ENG'
    assert response.financial_institution is None


def test_sign_on_message_set_requires_sonrs() -> None:
    with pytest.raises(MissingFieldError):
        build_sign_on_message_set(_element('<SIGNONMSGSRSV1></SIGNONMSGSRSV1>'))
