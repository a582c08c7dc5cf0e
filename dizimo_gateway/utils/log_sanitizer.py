# D:\DizimoGateway\dizimo_gateway\utils\log_sanitizer.py

"""
log_sanitizer.py

Sanitizador de logs para evitar a exposição de dados sensíveis.

Mascara CPFs, tokens Bearer/Basic e redige campos sensíveis conhecidos (segredos,
senhas, certificado digital) em strings, dicionários e listas. Sempre use estas
funções ao logar dados de requisições ao banco.

Functions:
    sanitize_log(data) -> Any:
        Retorna uma cópia redigida de qualquer estrutura.

    safe_log(logger, level, message, data=None) -> None:
        Loga a mensagem com os dados já sanitizados.
"""

import logging
import re
from typing import Any, Optional

REDACTED = "[REDACTED]"

SENSITIVE_FIELDS = {
    "password",
    "senha",
    "secret",
    "client_secret",
    "clientsecret",
    "certificate",
    "certificado",
    "certificate_password",
    "certificatepassword",
    "token",
    "access_token",
    "accesstoken",
    "authorization",
    "passphrase",
}

# Identificadores do banco que podem coincidir com o formato de CPF
PASSTHROUGH_FIELDS = {
    "nossonumero",
    "nosso_numero",
    "txid",
    "endtoendid",
    "codigobarras",
    "linhadigitavel",
    "cep",
}

_CPF_PATTERN = re.compile(r"(?<!\d)\d{3}\.?\d{3}\.?\d{3}-?\d{2}(?!\d)")
_BEARER_PATTERN = re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)
_BASIC_PATTERN = re.compile(r"Basic\s+[A-Za-z0-9+/]+=*", re.IGNORECASE)
_JSON_SECRET_PATTERN = re.compile(
    r'"(access_token|client_secret|password|certificate|certificate_password)"\s*:\s*"[^"]*"',
    re.IGNORECASE,
)


def _mask_cpf(match: re.Match) -> str:
    digits = re.sub(r"\D", "", match.group(0))
    return f"***.***.*{digits[-4:-2]}-{digits[-2:]}"


def _sanitize_string(data: str) -> str:
    sanitized = _CPF_PATTERN.sub(_mask_cpf, data)
    sanitized = _BEARER_PATTERN.sub(f"Bearer {REDACTED}", sanitized)
    sanitized = _BASIC_PATTERN.sub(f"Basic {REDACTED}", sanitized)
    sanitized = _JSON_SECRET_PATTERN.sub(lambda m: f'"{m.group(1)}":"{REDACTED}"', sanitized)
    return sanitized


def sanitize_log(data: Any) -> Any:
    """
    Sanitiza qualquer tipo de dado para logging seguro.

    Não altera o objeto recebido; devolve uma nova estrutura.

    Args:
        data (Any): String, dicionário, lista ou valor escalar.

    Returns:
        Any: Dados com informações sensíveis mascaradas.

    Exemplo:
        >>> sanitize_log({"nome": "João", "cpf": "123.456.789-01", "client_secret": "x"})
        {'nome': 'João', 'cpf': '***.***.*89-01', 'client_secret': '[REDACTED]'}
    """
    if data is None:
        return None
    if isinstance(data, str):
        return _sanitize_string(data)
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if lowered in SENSITIVE_FIELDS:
                sanitized[key] = REDACTED
            elif lowered in PASSTHROUGH_FIELDS:
                sanitized[key] = value
            else:
                sanitized[key] = sanitize_log(value)
        return sanitized
    if isinstance(data, (list, tuple)):
        return [sanitize_log(item) for item in data]
    return data


def safe_log(logger: logging.Logger, level: int, message: str, data: Optional[Any] = None) -> None:
    """
    Loga uma mensagem sanitizando os dados associados.

    Args:
        logger (logging.Logger): Logger do módulo chamador.
        level (int): Nível de log (logging.INFO, logging.ERROR...).
        message (str): Mensagem de log.
        data (Any, optional): Dados a serem sanitizados e anexados à mensagem.
    """
    if data is None:
        logger.log(level, message)
    else:
        logger.log(level, "%s %s", message, sanitize_log(data))
