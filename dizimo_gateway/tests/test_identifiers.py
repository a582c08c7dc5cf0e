# D:\DizimoGateway\dizimo_gateway\tests\test_identifiers.py

"""
test_identifiers.py

Módulo de testes para a geração de identificadores (txid e nosso número) e para
a formatação de valores, documentos e vencimentos.

Testes:
    - Tamanho, alfabeto e unicidade do txid
    - Formato do nosso número
    - Arredondamento de valores (meio para cima)
    - Conversão para centavos
    - Limpeza de documentos
    - Cálculo de vencimento do boleto
"""

import string
from datetime import date, datetime
from decimal import Decimal

import pytest

from dizimo_gateway.config.settings import TIMEZONE
from dizimo_gateway.services.payment.identifiers import (
    ALPHANUMERIC_CHARS,
    amount_to_cents,
    boleto_due_date,
    format_pix_amount,
    generate_nosso_numero,
    generate_txid,
    strip_non_digits,
    to_decimal_amount,
)


def test_generate_txid_length_and_alphabet():
    """
    Verifica se o txid tem 32 caracteres alfanuméricos.
    """
    txid = generate_txid()

    assert len(txid) == 32
    assert all(c in ALPHANUMERIC_CHARS for c in txid)
    assert "-" not in txid


def test_generate_txid_has_no_duplicates():
    """
    10.000 gerações consecutivas não devem repetir nenhum txid.
    """
    txids = {generate_txid() for _ in range(10000)}
    assert len(txids) == 10000


def test_generate_txid_custom_length():
    assert len(generate_txid(26)) == 26
    assert len(generate_txid(35)) == 35

    with pytest.raises(ValueError):
        generate_txid(25)
    with pytest.raises(ValueError):
        generate_txid(36)


def test_generate_nosso_numero_format():
    """
    O nosso número deve ter sempre 11 dígitos numéricos.
    """
    for _ in range(1000):
        nosso_numero = generate_nosso_numero()
        assert len(nosso_numero) == 11
        assert all(c in string.digits for c in nosso_numero)


@pytest.mark.parametrize("amount, expected", [
    (100, "100.00"),
    (49.9, "49.90"),
    (0.005, "0.01"),
    (2.675, "2.68"),
    ("10.1", "10.10"),
    (Decimal("1.234"), "1.23"),
])
def test_format_pix_amount(amount, expected):
    assert format_pix_amount(amount) == expected


@pytest.mark.parametrize("amount", [0, -1, "-0.01", 0.004, "abc", None, True])
def test_invalid_amounts_are_rejected(amount):
    with pytest.raises(ValueError):
        to_decimal_amount(amount)


def test_amount_to_cents():
    assert amount_to_cents(100) == 10000
    assert amount_to_cents(100.5) == 10050
    assert amount_to_cents("0.005") == 1
    assert isinstance(amount_to_cents(1), int)


def test_strip_non_digits():
    assert strip_non_digits("123.456.789-01") == "12345678901"
    assert strip_non_digits("01310-100") == "01310100"
    assert strip_non_digits(None) == ""


def test_boleto_due_date_is_seven_calendar_days():
    """
    O vencimento é a data de emissão somada a 7 dias corridos.
    """
    issued_at = datetime(2024, 12, 28, 23, 30, tzinfo=TIMEZONE)

    assert boleto_due_date(issued_at) == date(2025, 1, 4)
    assert boleto_due_date(issued_at, days=1) == date(2024, 12, 29)
