# D:\DizimoGateway\dizimo_gateway\tests\test_gateway_router.py

"""
test_gateway_router.py

Módulo de testes para o roteador de gateways (GatewayRouter).

Testes:
    - Nenhum gateway ativo
    - Gateway ativo não suportado
    - Gateway ativo válido (armazenamento em memória e banco de dados)
"""

import pytest

from dizimo_gateway.services.payment.config_store import GatewayConfigStore
from dizimo_gateway.services.payment.errors import (
    NoActiveGatewayError,
    RoutingError,
    UnsupportedGatewayError,
)
from dizimo_gateway.services.payment.gateway_router import GatewayRouter
from dizimo_gateway.tests.utils.bank_utils import (
    TENANT,
    InMemoryConfigStore,
    make_configuration_row,
)


@pytest.mark.asyncio
async def test_no_active_gateway():
    store = InMemoryConfigStore([make_configuration_row(is_active=False, certificate="Y2VydA==")])
    router = GatewayRouter(store, tenant=TENANT)

    with pytest.raises(NoActiveGatewayError) as exc_info:
        await router.get_active_gateway()

    assert "/admin/gateways/" in exc_info.value.message
    assert isinstance(exc_info.value, RoutingError)


@pytest.mark.asyncio
async def test_unsupported_gateway():
    store = InMemoryConfigStore([make_configuration_row(gateway_name="Cielo", certificate="Y2VydA==")])
    router = GatewayRouter(store, tenant=TENANT)

    with pytest.raises(UnsupportedGatewayError) as exc_info:
        await router.get_active_gateway()

    assert exc_info.value.message == 'Gateway "Cielo" não é suportado pelo sistema.'


@pytest.mark.asyncio
async def test_active_gateway(config_store):
    router = GatewayRouter(config_store, tenant=TENANT)

    assert await router.get_active_gateway() == "Bradesco"


@pytest.mark.asyncio
async def test_active_gateway_from_database(session_maker):
    async with session_maker() as session:
        session.add(make_configuration_row(gateway_name="bradesco", certificate="Y2VydA=="))
        await session.commit()

    router = GatewayRouter(GatewayConfigStore(session_maker), tenant=TENANT)

    assert await router.get_active_gateway() == "bradesco"


@pytest.mark.asyncio
async def test_other_tenant_is_ignored(config_store):
    router = GatewayRouter(config_store, tenant="outra-empresa")

    with pytest.raises(NoActiveGatewayError):
        await router.get_active_gateway()
