# D:\DizimoGateway\dizimo_gateway\services\payment\identifiers.py

"""
identifiers.py

Geração dos identificadores enviados ao banco (txid e nosso número) e utilitários
de formatação de valores, documentos e datas.

Os identificadores funcionam como chave de idempotência junto ao banco, por isso são
gerados com `secrets` e nunca a partir de contadores.
"""

import re
import secrets
import string
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from dizimo_gateway.config.settings import BOLETO_DUE_DAYS, get_current_time

ALPHANUMERIC_CHARS = string.ascii_letters + string.digits
TXID_LENGTH = 32
NOSSO_NUMERO_LENGTH = 11

_CENT = Decimal("0.01")
_NON_DIGITS = re.compile(r"\D")

Amount = Union[int, float, str, Decimal]


def generate_txid(length: int = TXID_LENGTH) -> str:
    """
    Gera um txid para cobranças PIX (padrão BACEN).

    O txid deve ter entre 26 e 35 caracteres alfanuméricos, sem hífens.

    Args:
        length (int): Tamanho do txid. Padrão é 32.

    Returns:
        str: txid alfanumérico.

    Raises:
        ValueError: Se o tamanho estiver fora do intervalo 26-35.
    """
    if not 26 <= length <= 35:
        raise ValueError("O txid deve ter entre 26 e 35 caracteres")
    return "".join(secrets.choice(ALPHANUMERIC_CHARS) for _ in range(length))


def generate_nosso_numero() -> str:
    """
    Gera um nosso número de 11 dígitos numéricos para boletos.

    Returns:
        str: nosso número com exatamente 11 dígitos (zeros à esquerda preservados).
    """
    return "".join(secrets.choice(string.digits) for _ in range(NOSSO_NUMERO_LENGTH))


def to_decimal_amount(amount: Amount) -> Decimal:
    """
    Converte um valor em reais para Decimal com 2 casas, arredondando meio para cima.

    O float é convertido pela sua representação textual, de modo que 0.005 vira 0.01.

    Raises:
        ValueError: Se o valor não for numérico ou não for positivo.
    """
    if isinstance(amount, bool):
        raise ValueError("Valor inválido para pagamento")
    try:
        value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValueError(f"Valor inválido para pagamento: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValueError("O valor do pagamento deve ser maior que zero")
    return value


def format_pix_amount(amount: Amount) -> str:
    """
    Formata um valor em reais como string com 2 casas decimais (padrão BACEN).

    Ex: 100 -> "100.00", 49.9 -> "49.90", 0.005 -> "0.01"
    """
    return f"{to_decimal_amount(amount):.2f}"


def amount_to_cents(amount: Amount) -> int:
    """Converte um valor em reais para centavos inteiros."""
    return int(to_decimal_amount(amount) * 100)


def strip_non_digits(value: Optional[str]) -> str:
    """
    Remove caracteres não numéricos de CPF/CNPJ/CEP.

    Ex: "123.456.789-01" -> "12345678901"
    """
    return _NON_DIGITS.sub("", value or "")


def boleto_due_date(issued_at: Optional[datetime] = None, days: int = BOLETO_DUE_DAYS) -> date:
    """
    Calcula o vencimento do boleto: dias corridos a partir da emissão.

    Args:
        issued_at (datetime, optional): Momento da emissão. Padrão é agora (America/Sao_Paulo).
        days (int): Dias corridos até o vencimento.

    Returns:
        date: Data de vencimento.
    """
    issued_at = issued_at or get_current_time()
    return (issued_at + timedelta(days=days)).date()
