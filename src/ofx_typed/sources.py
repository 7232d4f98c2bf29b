"""Input discovery and decoding helpers for OFX files."""

from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ofxtools.header import OFXHeaderError, OFXHeaderV1

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from ofx_typed.models import Document

LOGGER = logging.getLogger(__name__)


class SourceFormat(str, Enum):
    """Input formats recognized by file suffix."""

    OFX = 'ofx'
    UNKNOWN = 'unknown'


FORMAT_MAP: dict[str, SourceFormat] = {
    '.ofx': SourceFormat.OFX,
    '.qfx': SourceFormat.OFX,
}
"""Mapping between file suffixes and supported ``SourceFormat`` values."""


@dataclass(frozen=True, slots=True)
class ParseReport:
    """Outcome of parsing one input file."""

    source_path: Path
    document: Document

    def transaction_count(self) -> int:
        return sum(len(stmt.transactions) for stmt in self.document.statements if stmt.transactions is not None)

    def summary(self) -> str:
        """Return a human readable summary string for logging/UX."""

        statements = self.document.statements
        accounts = ', '.join(stmt.account.account_id for stmt in statements) or 'no account info'
        return (
            f'{self.source_path.name}: {len(statements)} statements, '
            f'{self.transaction_count()} transactions, accounts {accounts}'
        )


def detect_format(path: Path) -> SourceFormat:
    """Infer the ``SourceFormat`` for ``path`` based on its suffix."""

    return FORMAT_MAP.get(path.suffix.lower(), SourceFormat.UNKNOWN)


def iter_sources(target: Path) -> Iterator[Path]:
    """Yield OFX files for ``target`` (file or directory)."""

    expanded = target.expanduser()
    if expanded.is_file():
        if detect_format(expanded) is SourceFormat.UNKNOWN:
            raise ValueError(f'Unsupported input format: {expanded.suffix}')
        yield expanded
        return

    if not expanded.is_dir():
        raise FileNotFoundError(f'Input path not found: {expanded}')

    for entry in sorted(expanded.iterdir()):
        if entry.is_file() and detect_format(entry) is SourceFormat.OFX:
            yield entry


def gather_sources(paths: Iterable[Path]) -> list[Path]:
    """Collect OFX files for all provided ``paths``."""

    sources: list[Path] = []
    for path in paths:
        sources.extend(iter_sources(path))
    return sources


def _charset_codec(charset: str, fallback_charset: str) -> str:
    if charset in OFXHeaderV1.codecs:
        return OFXHeaderV1.codecs[charset]
    if charset.isdigit():
        try:
            return codecs.lookup(f'cp{charset}').name
        except LookupError:
            pass
    LOGGER.warning('Unknown OFX charset %r, decoding as %s', charset, fallback_charset)
    return fallback_charset


def guess_codec(raw: bytes, fallback_charset: str) -> str:
    """Pick a codec from the OFX 1.x SGML header of ``raw``.

    A header ``ofxtools`` accepts decodes with its ``OFXHeaderV1.codec``
    (``CHARSET:NONE`` is UTF-8). Otherwise the ``CHARSET`` value is looked up
    in the same table, other numeric charsets are Windows code pages, and
    anything else, or a missing header, falls back to ``fallback_charset``.
    """

    head = raw.split(b'<OFX>', 1)[0].decode('ascii', 'replace')
    try:
        header, _ = OFXHeaderV1.parse(head)
    except OFXHeaderError as exc:
        match = OFXHeaderV1.regex.search(head)
        if match is None:
            LOGGER.warning('No OFX 1.x header found, decoding as %s', fallback_charset)
            return fallback_charset
        LOGGER.debug('ofxtools rejected the OFX header: %s', exc)
        return _charset_codec(match['CHARSET'], fallback_charset)
    return header.codec


def read_ofx_text(path: Path, *, fallback_charset: str = 'cp1252') -> str:
    """Read ``path`` and decode it according to its OFX headers."""

    raw = path.read_bytes()
    return raw.decode(guess_codec(raw, fallback_charset))
