"""Leaf-value extraction and conversion helpers for OFX element trees."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, TypeVar

from ofx_typed.enums import decode_code
from ofx_typed.errors import MalformedFieldError, MissingFieldError

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Callable
    from enum import Enum
    from xml.etree.ElementTree import Element

    from ofx_typed.enums import UnrecognizedCode

T = TypeVar('T')
E = TypeVar('E', bound='Enum')

LOGGER = logging.getLogger(__name__)

ENTITIES: dict[str, str] = {
    '&lt;': '<',
    '&gt;': '>',
    '&nbsp;': ' ',
    '&amp;': '&',
}
"""SGML entities expanded in leaf text; ``&amp;`` last so it is not expanded twice."""

DATETIME_RE = re.compile(
    r"""
    ^(?P<date>\d{8})
    (?:(?P<time>\d{6})(?:\.(?P<fraction>\d{1,3}))?)?
    (?:\[(?P<offset>[+-]?\d{1,2}(?:\.\d+)?)(?::(?P<tzname>[^\]]*))?\])?$
    """,
    re.VERBOSE,
)
AMOUNT_RE = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$')
MAX_OFFSET_HOURS = Decimal(12)


def unescape(text: str) -> str:
    for entity, char in ENTITIES.items():
        text = text.replace(entity, char)
    return text


def parse_datetime(value: str) -> datetime:
    """Parse an OFX ``YYYYMMDD[HHMMSS[.XXX]][[offset[:TZ]]]`` value into an aware UTC datetime.

    The offset is in (possibly fractional) hours. Values without an offset are
    taken to be UTC.
    """

    match = DATETIME_RE.match(value.strip())
    if match is None:
        raise ValueError(f'unsupported OFX datetime: {value!r}')
    offset_hours = Decimal(match['offset'] or 0)
    if abs(offset_hours) > MAX_OFFSET_HOURS:
        raise ValueError(f'timezone offset out of range: {match["offset"]}')
    stamp = match['date'] + (match['time'] or '000000')
    moment = datetime.strptime(stamp, '%Y%m%d%H%M%S')
    if match['fraction']:
        moment = moment.replace(microsecond=int(match['fraction'].ljust(3, '0')) * 1000)
    seconds = int((offset_hours * 3600).to_integral_value())
    try:
        return moment.replace(tzinfo=timezone(timedelta(seconds=seconds))).astimezone(UTC)
    except OverflowError as exc:
        raise ValueError(f'OFX datetime out of range in UTC: {value!r}') from exc


def parse_amount(value: str) -> Decimal:
    """Parse a signed decimal amount without going through binary floating point."""

    cleaned = value.strip()
    if not AMOUNT_RE.match(cleaned):
        raise ValueError(f'unrecognized amount: {value!r}')
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:  # pragma: no cover - regex already guards the format
        raise ValueError(f'unrecognized amount: {value!r}') from exc


def text_of(element: Element, name: str) -> str | None:
    """Return the stripped, unescaped text of the first ``name`` child, or ``None``."""

    child = element.find(name)
    if child is None or child.text is None:
        return None
    text = unescape(child.text).strip()
    return text or None


def children(element: Element, name: str) -> list[Element]:
    """Return every ``name`` child of ``element`` in document order."""

    return element.findall(name)


def get_required(element: Element, name: str, convert: Callable[[str], T]) -> T:
    """Return ``convert(text)`` for the required ``name`` child.

    Raises ``MissingFieldError`` when the child is absent or empty and
    ``MalformedFieldError`` when ``convert`` rejects the value.
    """

    raw = text_of(element, name)
    if raw is None:
        raise MissingFieldError(element.tag, name)
    try:
        return convert(raw)
    except ValueError as exc:
        raise MalformedFieldError(element.tag, name, raw, str(exc)) from exc


def get_optional(element: Element, name: str, convert: Callable[[str], T]) -> T | None:
    """Return ``convert(text)`` for the optional ``name`` child.

    Absent children and values ``convert`` rejects both yield ``None``.
    """

    raw = text_of(element, name)
    if raw is None:
        return None
    try:
        return convert(raw)
    except ValueError as exc:
        LOGGER.warning('Ignoring malformed optional %s/%s value %r: %s', element.tag, name, raw, exc)
        return None


def get_text(element: Element, name: str) -> str:
    return get_required(element, name, str)


def get_optional_text(element: Element, name: str) -> str | None:
    return get_optional(element, name, str)


def get_int(element: Element, name: str) -> int:
    return get_required(element, name, int)


def get_amount(element: Element, name: str) -> Decimal:
    return get_required(element, name, parse_amount)


def get_optional_amount(element: Element, name: str) -> Decimal | None:
    return get_optional(element, name, parse_amount)


def get_date(element: Element, name: str) -> datetime:
    return get_required(element, name, parse_datetime)


def get_optional_date(element: Element, name: str) -> datetime | None:
    return get_optional(element, name, parse_datetime)


def get_code(element: Element, name: str, enum_cls: type[E]) -> E | UnrecognizedCode:
    """Return the vocabulary member for the required ``name`` child."""

    return get_required(element, name, lambda raw: decode_code(enum_cls, raw))


def get_optional_code(element: Element, name: str, enum_cls: type[E]) -> E | UnrecognizedCode | None:
    return get_optional(element, name, lambda raw: decode_code(enum_cls, raw))
