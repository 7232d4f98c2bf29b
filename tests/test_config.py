import textwrap
from pathlib import Path

import pytest

from ofx_typed.config import ParserSettings, load_settings


def test_load_settings_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / 'missing.toml'
    with pytest.raises(FileNotFoundError):
        load_settings(missing)


def test_load_settings_merges_overrides(tmp_path: Path) -> None:
    config_file = tmp_path / 'config.toml'
    config_file.write_text(
        textwrap.dedent(
            """
            [parser]
            skip_malformed_transactions = true
            """
        ),
        encoding='utf-8',
    )

    settings = load_settings(config_file)
    assert isinstance(settings, ParserSettings)
    assert settings.skip_malformed_transactions is True
    # unspecified sections keep their defaults
    assert settings.fallback_charset == 'cp1252'


def test_load_settings_input_section(tmp_path: Path) -> None:
    config_file = tmp_path / 'config.toml'
    config_file.write_text('[input]\nfallback_charset = "latin-1"\n', encoding='utf-8')
    settings = load_settings(config_file)
    assert settings.fallback_charset == 'latin-1'
    assert settings.skip_malformed_transactions is False


def test_load_settings_rejects_non_boolean_flag(tmp_path: Path) -> None:
    config_file = tmp_path / 'config.toml'
    config_file.write_text('[parser]\nskip_malformed_transactions = "yes"\n', encoding='utf-8')
    with pytest.raises(ValueError, match='must be a boolean'):
        load_settings(config_file)
