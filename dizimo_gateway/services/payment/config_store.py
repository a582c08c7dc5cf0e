# D:\DizimoGateway\dizimo_gateway\services\payment\config_store.py

"""
config_store.py

Leitura das configurações de gateway armazenadas no banco de dados e cache em memória
com tempo de vida (TTL) para evitar uma consulta a cada operação de pagamento.

Classes:
    ConfigurationStore: Contrato de armazenamento consumido pela integração.
    GatewayConfigStore: Implementação SQLAlchemy do contrato.
    ConfigurationCache: Resolve, valida e memoiza a configuração de cada gateway.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dizimo_gateway.config.settings import COMPANY_ID, CONFIG_CACHE_TTL_SECONDS
from dizimo_gateway.models.gateway_models import GatewayConfiguration
from dizimo_gateway.utils.log_sanitizer import safe_log

from .errors import (
    ConfigurationError,
    GatewayDisabledError,
    IncompleteCredentialsError,
    NotConfiguredError,
)
from .types import Environment, ProviderConfiguration

logger = logging.getLogger(__name__)


class ConfigurationStore(Protocol):
    """Contrato de armazenamento das configurações de gateway."""

    async def find_configuration(self, tenant: str, provider_name: str) -> Optional[GatewayConfiguration]:
        ...

    async def find_active_configuration(self, tenant: str, provider_name: str) -> Optional[GatewayConfiguration]:
        ...

    async def find_active_provider(self, tenant: str) -> Optional[str]:
        ...


class GatewayConfigStore:
    """
    Implementação do contrato de armazenamento usando SQLAlchemy assíncrono.

    Cada consulta abre e fecha sua própria sessão, pois o store é compartilhado
    entre operações concorrentes.
    """

    def __init__(self, session_maker: async_sessionmaker):
        """
        Inicializa o store.

        Args:
            session_maker (async_sessionmaker): Criador de sessões assíncronas.
        """
        self.session_maker = session_maker

    async def _first(self, query):
        session: AsyncSession
        async with self.session_maker() as session:
            result = await session.execute(query)
            return result.scalars().first()

    async def find_configuration(self, tenant: str, provider_name: str) -> Optional[GatewayConfiguration]:
        """
        Busca a configuração do gateway, ativa ou não.

        Args:
            tenant (str): Identificador da empresa.
            provider_name (str): Nome do gateway (comparação sem distinção de maiúsculas).

        Returns:
            Optional[GatewayConfiguration]: Registro encontrado ou None.
        """
        return await self._first(
            select(GatewayConfiguration)
            .where(
                and_(
                    GatewayConfiguration.company_id == tenant,
                    func.lower(GatewayConfiguration.gateway_name) == provider_name.lower()
                )
            )
            .limit(1)
        )

    async def find_active_configuration(self, tenant: str, provider_name: str) -> Optional[GatewayConfiguration]:
        """
        Busca a configuração ativa do gateway.

        Returns:
            Optional[GatewayConfiguration]: Registro ativo ou None.
        """
        return await self._first(
            select(GatewayConfiguration)
            .where(
                and_(
                    GatewayConfiguration.company_id == tenant,
                    func.lower(GatewayConfiguration.gateway_name) == provider_name.lower(),
                    GatewayConfiguration.is_active == True
                )
            )
            .limit(1)
        )

    async def find_active_provider(self, tenant: str) -> Optional[str]:
        """
        Retorna o nome do gateway ativo da empresa.

        Se houver mais de um registro ativo, retorna o primeiro devolvido pela consulta.
        """
        session: AsyncSession
        async with self.session_maker() as session:
            result = await session.execute(
                select(GatewayConfiguration.gateway_name)
                .where(
                    and_(
                        GatewayConfiguration.company_id == tenant,
                        GatewayConfiguration.is_active == True
                    )
                )
                .limit(1)
            )
            return result.scalars().first()


def build_provider_configuration(provider_name: str, row: GatewayConfiguration) -> ProviderConfiguration:
    """
    Converte o registro do banco em ProviderConfiguration validada.

    As credenciais de produção são usadas quando o ambiente é 'production'; nos
    demais ambientes são usadas as de homologação/sandbox.

    Raises:
        GatewayDisabledError: Se o registro estiver inativo.
        IncompleteCredentialsError: Se faltar algum campo obrigatório.
        ConfigurationError: Se o ambiente não for reconhecido.
    """
    if not row.is_active:
        raise GatewayDisabledError(provider_name)

    try:
        environment = Environment.from_value(row.environment)
    except ValueError:
        raise ConfigurationError(
            f"Ambiente '{row.environment}' inválido para o gateway {provider_name}.",
            {"gateway_name": provider_name, "environment": row.environment},
        )

    if environment is Environment.PRODUCTION:
        client_id, client_secret = row.prod_client_id, row.prod_client_secret
    else:
        client_id, client_secret = row.dev_client_id, row.dev_client_secret

    fields = {
        "client_id": client_id,
        "client_secret": client_secret,
        "certificate": row.certificate,
        "certificate_password": row.certificate_password,
        "pix_key": row.pix_key,
    }
    missing = [name for name, value in fields.items() if not (value or "").strip()]
    if missing:
        raise IncompleteCredentialsError(provider_name, missing)

    return ProviderConfiguration(
        provider_name=provider_name,
        environment=environment,
        client_id=client_id,
        client_secret=client_secret,
        certificate=row.certificate,
        certificate_password=row.certificate_password,
        pix_key=row.pix_key,
        is_active=True,
    )


@dataclass
class _CacheEntry:
    configuration: ProviderConfiguration
    inserted_at: float


class ConfigurationCache:
    """
    Cache em memória da configuração resolvida de cada gateway.

    Uma entrada vale por `ttl_seconds` a partir da inserção. Misses concorrentes
    do mesmo gateway compartilham uma única consulta ao banco.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        tenant: str = COMPANY_ID,
        ttl_seconds: float = CONFIG_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.tenant = tenant
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[Tuple[str, str], _CacheEntry] = {}
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    def _key(self, provider_name: str) -> Tuple[str, str]:
        return (self.tenant, provider_name.lower())

    def _fresh_entry(self, key: Tuple[str, str]) -> Optional[_CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.inserted_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry

    async def get_configuration(self, provider_name: str) -> ProviderConfiguration:
        """
        Retorna a configuração do gateway, consultando o banco apenas em miss ou expiração.

        Args:
            provider_name (str): Nome do gateway (ex.: "Bradesco").

        Returns:
            ProviderConfiguration: Configuração validada.

        Raises:
            NotConfiguredError: Se não houver registro para o gateway.
            GatewayDisabledError: Se o registro existir, mas estiver inativo.
            IncompleteCredentialsError: Se faltar credencial, certificado ou chave PIX.
        """
        key = self._key(provider_name)
        entry = self._fresh_entry(key)
        if entry is not None:
            return entry.configuration

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self._fresh_entry(key)
            if entry is not None:
                return entry.configuration

            row = await self.store.find_active_configuration(self.tenant, provider_name)
            if row is None:
                row = await self.store.find_configuration(self.tenant, provider_name)
                if row is None:
                    raise NotConfiguredError(provider_name)
            configuration = build_provider_configuration(provider_name, row)

            self._entries[key] = _CacheEntry(configuration, self.clock())
            safe_log(logger, logging.INFO, "[GATEWAY_CONFIG] Configuração carregada e cacheada", {
                "gateway": provider_name,
                "environment": configuration.environment.value,
            })
            return configuration

    def invalidate(self, provider_name: str) -> None:
        """Remove a configuração do gateway do cache."""
        self._entries.pop(self._key(provider_name), None)

    def clear(self) -> None:
        """Limpa todo o cache."""
        self._entries.clear()
