"""Typed reader for OFX 1.6 (SGML) statements."""

from __future__ import annotations

from importlib import metadata as _metadata

from ofx_typed.document import parse, parse_header
from ofx_typed.errors import MalformedFieldError, MissingFieldError, OFXError, OFXFieldError, TokenizeError

__all__ = [
    'MalformedFieldError',
    'MissingFieldError',
    'OFXError',
    'OFXFieldError',
    'TokenizeError',
    'parse',
    'parse_header',
]


def __getattr__(name: str) -> str:
    """Provide dynamic attributes such as ``__version__`` from package metadata."""

    if name == '__version__':
        return _metadata.version('ofx-typed')
    raise AttributeError(name)
