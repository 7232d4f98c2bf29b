"""Top-level assembly of an OFX 1.x SGML document into a :class:`Document`."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

from ofxtools.Parser import ParseError, TreeBuilder

from ofx_typed.builders import build_bank_message_set, build_credit_card_message_set, build_sign_on_message_set
from ofx_typed.config import DEFAULT_SETTINGS
from ofx_typed.enums import DataType, Encoding, Security, UnrecognizedCode, Version, decode_code
from ofx_typed.errors import MalformedFieldError, MissingFieldError, TokenizeError
from ofx_typed.models import Body, Document, Header

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Callable, Mapping
    from xml.etree.ElementTree import Element

    from ofx_typed.config import ParserSettings
    from ofx_typed.models import MessageSet

T = TypeVar('T')
E = TypeVar('E', bound=Enum)

LOGGER = logging.getLogger(__name__)

BODY_START = '<OFX>'
BYTE_ORDER_MARK = '\ufeff'
HEADER_AGGREGATE = 'HEADER'


class MessageSetKind(str, Enum):
    """Message sets understood by the assembler, keyed by their OFX tag."""

    SIGNON = 'SIGNONMSGSRSV1'
    BANK = 'BANKMSGSRSV1'
    CREDITCARD = 'CREDITCARDMSGSRSV1'


MESSAGE_SETS: dict[MessageSetKind, tuple[str, Callable[[Element, ParserSettings], MessageSet]]] = {
    MessageSetKind.SIGNON: ('sign_on', lambda element, _settings: build_sign_on_message_set(element)),
    MessageSetKind.BANK: ('bank', build_bank_message_set),
    MessageSetKind.CREDITCARD: ('credit_card', build_credit_card_message_set),
}
"""``Body`` slot and builder for each supported message set."""


def _split_header_lines(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        key, sep, value = stripped.partition(':')
        if not sep:
            raise MalformedFieldError(HEADER_AGGREGATE, 'line', stripped, 'expected KEY:VALUE')
        fields[key.strip().upper()] = value.strip()
    return fields


def _header_field(
    fields: Mapping[str, str],
    name: str,
    convert: Callable[[str], T],
    default: T | None = None,
) -> T:
    """Convert header ``name``; a ``None`` default makes the header required."""

    raw = fields.get(name)
    if raw is None:
        if default is None:
            raise MissingFieldError(HEADER_AGGREGATE, name)
        return default
    try:
        return convert(raw)
    except ValueError as exc:
        raise MalformedFieldError(HEADER_AGGREGATE, name, raw, str(exc)) from exc


def _strict(enum_cls: type[E]) -> Callable[[str], E]:
    def convert(raw: str) -> E:
        code = decode_code(enum_cls, raw)
        if isinstance(code, UnrecognizedCode):  # pragma: no cover - header vocabularies are strict
            raise ValueError(f'unknown {enum_cls.__name__} code: {raw!r}')
        return code

    return convert


def parse_header(text: str) -> Header:
    """Parse the ``KEY:VALUE`` header block that precedes ``<OFX>``.

    OFXHEADER, VERSION, CHARSET, OLDFILEUID and NEWFILEUID are required; DATA,
    SECURITY, ENCODING and COMPRESSION fall back to their OFX defaults.
    """

    fields = _split_header_lines(text)
    return Header(
        ofxheader=_header_field(fields, 'OFXHEADER', int),
        data=_header_field(fields, 'DATA', _strict(DataType), DataType.OFXSGML),
        version=_header_field(fields, 'VERSION', _strict(Version)),
        security=_header_field(fields, 'SECURITY', _strict(Security), Security.NONE),
        encoding=_header_field(fields, 'ENCODING', _strict(Encoding), Encoding.USASCII),
        charset=_header_field(fields, 'CHARSET', str),
        compression=_header_field(fields, 'COMPRESSION', str, ''),
        oldfileuid=_header_field(fields, 'OLDFILEUID', str),
        newfileuid=_header_field(fields, 'NEWFILEUID', str),
    )


class OFXTreeBuilder(TreeBuilder):
    """``ofxtools`` tokenizer that also rejects unbalanced aggregate tags.

    The base builder pops whatever element is on top for any end tag and
    closes silently with aggregates still open.
    """

    def __init__(self) -> None:
        super().__init__()
        self._open: list[str] = []

    def start(self, tag: str, attrs: dict[str, str], /) -> Element:
        self._open.append(tag)
        return super().start(tag, attrs)

    def end(self, tag: str, /) -> Element:
        if not self._open:
            raise ParseError(f"Close tag '</{tag}>' without an open aggregate")
        if self._open[-1] != tag:
            raise ParseError(f"Mismatched tags: open='{self._open[-1]}', close='{tag}'")
        self._open.pop()
        return super().end(tag)

    def close(self) -> Element:
        if self._open:
            raise ParseError(f"Unclosed aggregates: {', '.join(self._open)}")
        return super().close()


def build_tree(body: str) -> Element:
    """Tokenize the SGML body with ``ofxtools`` and return its ``<OFX>`` root element."""

    builder = OFXTreeBuilder()
    try:
        builder.feed(body)
        root = builder.close()
    except ParseError as exc:
        raise TokenizeError(f'Failed to tokenize OFX body: {exc}') from exc
    if root.tag != 'OFX':
        raise TokenizeError('OFX body does not have an <OFX> root element')
    return root


def build_body(root: Element, settings: ParserSettings = DEFAULT_SETTINGS) -> Body:
    """Build every known message set found directly under ``<OFX>``; unknown sections are ignored."""

    known = {kind.value for kind in MessageSetKind}
    for node in root:
        if node.tag not in known:
            LOGGER.debug('Ignoring unsupported OFX section %s', node.tag)

    slots: dict[str, MessageSet | None] = {}
    for kind, (slot, builder) in MESSAGE_SETS.items():
        node = root.find(kind.value)
        slots[slot] = builder(node, settings) if node is not None else None
    return Body(**slots)  # type: ignore[arg-type]


def parse(raw_text: str, *, settings: ParserSettings | None = None) -> Document:
    """Parse an OFX 1.x SGML document into a typed :class:`Document`.

    Raises:
        TokenizeError: the text has no ``<OFX>`` body or its markup is broken.
        MissingFieldError: a required field or aggregate is absent.
        MalformedFieldError: a required value cannot be converted.
    """

    text = raw_text.lstrip(BYTE_ORDER_MARK)
    start = text.find(BODY_START)
    if start == -1:
        raise TokenizeError(f'No {BODY_START} element found')

    header = parse_header(text[:start])
    root = build_tree(text[start:])
    return Document(header=header, body=build_body(root, settings or DEFAULT_SETTINGS))
