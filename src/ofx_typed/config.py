"""Configuration utilities and dataclasses for ofx-typed."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH: Path = Path.home() / '.local/etc/ofx_typed.toml'
"""Default location for the user provided TOML configuration file."""

BASE_SETTINGS: dict[str, Any] = {
    'parser': {
        'skip_malformed_transactions': False,
    },
    'input': {
        'fallback_charset': 'cp1252',
    },
}
"""Default settings merged with any local overrides."""


@dataclass(frozen=True, slots=True)
class ParserSettings:
    """Knobs controlling how strictly documents are mapped and how files are decoded."""

    skip_malformed_transactions: bool = False
    fallback_charset: str = 'cp1252'


DEFAULT_SETTINGS = ParserSettings()


def _merge_dict(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, returning a new dictionary."""

    merged: dict[str, Any] = dict(base)
    for key, value in overrides.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = _merge_dict(merged[key], value)
        else:
            merged[key] = value
    return merged


def _prepare_settings(raw: Mapping[str, Any]) -> ParserSettings:
    """Convert a raw dictionary into ``ParserSettings`` with proper types."""

    parser_cfg = raw.get('parser', {})
    input_cfg = raw.get('input', {})
    skip = parser_cfg.get('skip_malformed_transactions', False)
    if not isinstance(skip, bool):
        raise ValueError('parser.skip_malformed_transactions must be a boolean')
    return ParserSettings(
        skip_malformed_transactions=skip,
        fallback_charset=str(input_cfg.get('fallback_charset', 'cp1252')),
    )


def load_settings(path: Path | None = None) -> ParserSettings:
    """Load ``ParserSettings`` from the provided TOML file path."""

    config_path = (path or DEFAULT_CONFIG_PATH).expanduser()
    if not config_path.is_file():
        raise FileNotFoundError(f'Configuration file not found: {config_path}')

    with config_path.open('rb') as handle:
        overrides = tomllib.load(handle)

    return _prepare_settings(_merge_dict(BASE_SETTINGS, overrides))
