# D:\DizimoGateway\dizimo_gateway\config\settings.py

"""
settings.py

Este módulo contém as configurações principais da camada de integração com o
gateway bancário, incluindo variáveis de ambiente, banco de dados, tempos limite
das chamadas externas e fuso horário.

Configurações:
    COMPANY_ID: Identificador da empresa (tenant) injetado pela aplicação hospedeira.
    DATABASE_URL: URL de conexão com o banco de dados assíncrono.
    BANK_TIMEOUT_SECONDS: Tempo limite de cada chamada à API do banco.
    CONFIG_CACHE_TTL_SECONDS: Tempo de vida da configuração em cache.
    TOKEN_SAFETY_MARGIN_SECONDS: Margem subtraída da validade do token OAuth2.
    PIX_EXPIRATION_SECONDS: Expiração das cobranças PIX.
    BOLETO_DUE_DAYS: Dias corridos até o vencimento do boleto.
    PIX_PAYER_REQUEST: Texto enviado ao pagador junto da cobrança PIX.
    LOG_LEVEL: Nível de log padrão.
    TIMEZONE: Fuso horário padrão da aplicação.
"""

from dotenv import load_dotenv
import logging
import os
from datetime import datetime
from zoneinfo import ZoneInfo

# Carrega as variáveis do arquivo .env
load_dotenv()

COMPANY_ID = os.getenv("COMPANY_INIT", "")
"""
str: Identificador da empresa dona das configurações de gateway.
Injetado pela aplicação hospedeira através da variável de ambiente COMPANY_INIT.
"""

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./dizimo_gateway.db")
"""
str: URL de conexão com o banco de dados assíncrono.
Carregada de uma variável de ambiente ou definida como SQLite padrão em ambiente de desenvolvimento.
"""

BANK_TIMEOUT_SECONDS = float(os.getenv("BANK_TIMEOUT_SECONDS", 15))
"""
float: Tempo limite, em segundos, de toda chamada à API do banco (autenticação,
cobrança, registro e consulta). Padrão é 15 segundos.
"""

CONFIG_CACHE_TTL_SECONDS = float(os.getenv("CONFIG_CACHE_TTL_SECONDS", 300))
"""
float: Tempo de vida, em segundos, da configuração do gateway em memória.
Padrão é 5 minutos.
"""

TOKEN_SAFETY_MARGIN_SECONDS = 60
"""
int: Margem de segurança, em segundos, subtraída do `expires_in` informado pelo banco.
"""

PIX_EXPIRATION_SECONDS = 3600
"""
int: Expiração das cobranças PIX imediatas, em segundos.
"""

BOLETO_DUE_DAYS = 7
"""
int: Quantidade de dias corridos entre a emissão e o vencimento do boleto.
"""

PIX_PAYER_REQUEST = os.getenv("PIX_PAYER_REQUEST", "Contribuição")
"""
str: Texto exibido ao pagador no aplicativo do banco (campo solicitacaoPagador).
"""

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
"""
str: Nível de log padrão utilizado por setup_logging().
"""

TIMEZONE = ZoneInfo("America/Sao_Paulo")
"""
ZoneInfo: Fuso horário "America/Sao_Paulo", usado no cálculo de vencimentos.
"""


def get_current_time() -> datetime:
    """
    Retorna a data e hora atual no fuso horário da aplicação.

    Returns:
        datetime: Data e hora atual em America/Sao_Paulo.
    """
    return datetime.now(TIMEZONE)


def setup_logging(level: str = LOG_LEVEL) -> None:
    """
    Configura o logging básico da aplicação.

    Args:
        level (str): Nome do nível de log (DEBUG, INFO, WARNING...).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
