# D:\DizimoGateway\dizimo_gateway\tests\conftest.py

"""
conftest.py

Este módulo contém fixtures para configuração do banco de dados, do banco simulado
(servidor AIOHTTP) e dos componentes do gateway utilizados nos testes.

Fixtures:
    setup_database: Cria o schema em um SQLite em memória compartilhado.
    session_maker: Criador de sessões assíncronas sobre o banco de testes.
    fake_bank: Servidor AIOHTTP que imita as APIs do banco, com URLs redirecionadas.
    config_row: Registro de configuração ativo e completo (sandbox).
    config_store: Armazenamento em memória contendo config_row.
    config_cache: Cache de configuração sobre config_store.
    bradesco_gateway: BradescoGateway apontando para o banco simulado.
"""

import os
import sys

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer
from sqlalchemy.ext.asyncio import create_async_engine

# Adiciona o diretório raiz ao path para facilitar imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from dizimo_gateway.models.database import Base, get_session_maker
from dizimo_gateway.models import gateway_models  # noqa: F401
from dizimo_gateway.services.payment.bradesco_gateway import BradescoGateway
from dizimo_gateway.services.payment.config_store import ConfigurationCache
from dizimo_gateway.services.payment.environments import BRADESCO_URLS, EnvironmentUrls
from dizimo_gateway.services.payment.mtls_transport import MtlsTransportFactory
from dizimo_gateway.services.payment.request_executor import RequestExecutor
from dizimo_gateway.services.payment.types import Environment
from dizimo_gateway.tests.utils.bank_utils import (
    TENANT,
    FakeBank,
    InMemoryConfigStore,
    make_configuration_row,
)

# Usar um banco de dados em memória nomeado para ser compartilhado entre sessões
TEST_DB_URL = "sqlite+aiosqlite:///file:dizimo_gateway_test?mode=memory&cache=shared&uri=true"


@pytest_asyncio.fixture(scope="function")
async def setup_database():
    """
    Configura um banco de dados compartilhado para todas as sessões.

    Cria um único banco de dados em memória nomeado que pode ser
    acessado por várias sessões simultâneas.
    """
    engine = create_async_engine(TEST_DB_URL, echo=False, connect_args={"check_same_thread": False})

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Limpeza após o teste
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(setup_database):
    """
    Retorna o criador de sessões assíncronas sobre o banco compartilhado.
    """
    return get_session_maker(setup_database)


@pytest_asyncio.fixture(scope="function")
async def fake_bank(monkeypatch):
    """
    Sobe o banco simulado e redireciona as URLs de todos os ambientes para ele.

    Yields:
        FakeBank: Banco simulado com o registro das requisições recebidas.
    """
    bank = FakeBank()
    server = TestServer(bank.app)

    async with server:
        bank.base_url = f"http://{server.host}:{server.port}"
        for environment in Environment:
            monkeypatch.setitem(BRADESCO_URLS, environment, EnvironmentUrls(
                auth=f"{bank.base_url}/auth/server/oauth/token",
                api=bank.base_url,
                pix=bank.base_url,
            ))
        yield bank


@pytest.fixture
def config_row():
    """Registro de configuração do Bradesco, ativo e completo, em sandbox."""
    return make_configuration_row()


@pytest.fixture
def config_store(config_row):
    """Armazenamento em memória contendo apenas config_row."""
    return InMemoryConfigStore([config_row])


@pytest.fixture
def config_cache(config_store):
    """Cache de configuração da empresa de testes."""
    return ConfigurationCache(config_store, tenant=TENANT)


@pytest_asyncio.fixture(scope="function")
async def bradesco_gateway(fake_bank, config_cache):
    """
    Gateway Bradesco completo (token, PIX e Boleto) falando com o banco simulado.

    O prazo das chamadas é reduzido para que os testes de timeout sejam rápidos.
    """
    gateway = BradescoGateway(
        config_cache,
        transport=MtlsTransportFactory(),
        executor=RequestExecutor(timeout_seconds=2),
    )
    yield gateway
    await gateway.close()
