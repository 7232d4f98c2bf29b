from pathlib import Path

import pytest

FILES = Path(__file__).parent / 'files'


@pytest.fixture
def bank_ofx() -> str:
    return (FILES / 'bank.ofx').read_text(encoding='ascii')


@pytest.fixture
def credit_card_ofx() -> str:
    return (FILES / 'credit_card.ofx').read_text(encoding='ascii')
