"""Exception hierarchy raised while mapping an OFX document."""

from __future__ import annotations


class OFXError(ValueError):
    """Base class for every failure reported by :func:`ofx_typed.parse`."""


class TokenizeError(OFXError):
    """The input could not be read as OFX SGML markup at all."""


class OFXFieldError(OFXError):
    """A field of an aggregate prevented the aggregate from being built.

    ``aggregate`` is the OFX tag of the element being built (``STMTTRN``,
    ``HEADER``...) and ``field`` the child tag that failed.
    """

    def __init__(self, aggregate: str, field: str, message: str) -> None:
        super().__init__(message)
        self.aggregate = aggregate
        self.field = field


class MissingFieldError(OFXFieldError):
    """A required field or child aggregate is absent."""

    def __init__(self, aggregate: str, field: str) -> None:
        super().__init__(aggregate, field, f'{aggregate}: missing required field {field}')


class MalformedFieldError(OFXFieldError):
    """A field is present but its value cannot be converted."""

    def __init__(self, aggregate: str, field: str, raw_value: str, reason: str | None = None) -> None:
        message = f'{aggregate}: malformed {field} value {raw_value!r}'
        if reason:
            message = f'{message} ({reason})'
        super().__init__(aggregate, field, message)
        self.raw_value = raw_value
