"""Controlled vocabularies used by OFX fields and the policy applied to unknown codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

E = TypeVar('E', bound=Enum)


@dataclass(frozen=True, slots=True)
class UnrecognizedCode:
    """Code outside a lenient vocabulary, kept verbatim."""

    raw: str


class FieldPolicy(str, Enum):
    """How a vocabulary reacts to a code it does not know."""

    STRICT = 'strict'
    LENIENT = 'lenient'


class TransactionType(str, Enum):
    """``<TRNTYPE>`` values (OFX 1.6, 11.4.4.3)."""

    CREDIT = 'CREDIT'
    DEBIT = 'DEBIT'
    INTEREST = 'INT'
    DIVIDEND = 'DIV'
    FEE = 'FEE'
    SERVICE_CHARGE = 'SRVCHG'
    DEPOSIT = 'DEP'
    ATM = 'ATM'
    POINT_OF_SALE = 'POS'
    TRANSFER = 'XFER'
    CHECK = 'CHECK'
    PAYMENT = 'PAYMENT'
    CASH = 'CASH'
    DIRECT_DEPOSIT = 'DIRECTDEP'
    DIRECT_DEBIT = 'DIRECTDEBIT'
    REPEAT_PAYMENT = 'REPEATPMT'
    OTHER = 'OTHER'


class AccountType(str, Enum):
    """``<ACCTTYPE>`` values (OFX 1.6, 11.3.1.2)."""

    CHECKING = 'CHECKING'
    SAVINGS = 'SAVINGS'
    MONEY_MARKET = 'MONEYMRKT'
    CREDIT_LINE = 'CREDITLINE'
    CMA = 'CMA'


class Severity(str, Enum):
    """``<SEVERITY>`` of a ``<STATUS>`` aggregate."""

    INFO = 'INFO'
    WARN = 'WARN'
    ERROR = 'ERROR'


class Version(str, Enum):
    """SGML ``VERSION`` header values."""

    V102 = '102'
    V103 = '103'
    V151 = '151'
    V160 = '160'


class Security(str, Enum):
    NONE = 'NONE'
    TYPE1 = 'TYPE1'


class Encoding(str, Enum):
    UNICODE = 'UNICODE'
    USASCII = 'USASCII'
    UTF_8 = 'UTF-8'


class DataType(str, Enum):
    OFXSGML = 'OFXSGML'


VOCABULARY_POLICY: dict[type[Enum], FieldPolicy] = {
    TransactionType: FieldPolicy.LENIENT,
    AccountType: FieldPolicy.LENIENT,
    Severity: FieldPolicy.LENIENT,
    Version: FieldPolicy.STRICT,
    Security: FieldPolicy.STRICT,
    Encoding: FieldPolicy.STRICT,
    DataType: FieldPolicy.STRICT,
}
"""Single place deciding which vocabularies fall back and which reject unknown codes."""


def decode_code(enum_cls: type[E], raw: str) -> E | UnrecognizedCode:
    """Map ``raw`` onto ``enum_cls`` following its ``VOCABULARY_POLICY`` entry.

    Lenient vocabularies return :class:`UnrecognizedCode` for unknown codes;
    strict ones raise ``ValueError``.
    """

    code = raw.strip().upper()
    try:
        return enum_cls(code)
    except ValueError:
        if VOCABULARY_POLICY.get(enum_cls, FieldPolicy.STRICT) is FieldPolicy.LENIENT:
            return UnrecognizedCode(raw=raw.strip())
        raise ValueError(f'unknown {enum_cls.__name__} code: {raw!r}') from None
