# D:\DizimoGateway\dizimo_gateway\tests\test_bradesco_gateway.py

"""
test_bradesco_gateway.py

Módulo de testes para a implementação do gateway Bradesco.
Utiliza o banco simulado para validar o teste de conexão e o compartilhamento de
configuração e token entre os serviços PIX e Boleto.

Testes:
    - Teste de conexão
    - Token compartilhado entre PIX e Boleto
    - Erros de configuração propagados
"""

import pytest

from dizimo_gateway.services.payment.bradesco_gateway import BradescoGateway
from dizimo_gateway.services.payment.config_store import ConfigurationCache
from dizimo_gateway.services.payment.errors import (
    AuthenticationFailedError,
    GatewayDisabledError,
)
from dizimo_gateway.services.payment.types import (
    BoletoPayer,
    Environment,
    PayerAddress,
)
from dizimo_gateway.tests.utils.bank_utils import (
    TENANT,
    InMemoryConfigStore,
    make_configuration_row,
)


@pytest.mark.asyncio
async def test_get_gateway_config(bradesco_gateway):
    configuration = await bradesco_gateway.get_gateway_config()

    assert configuration.provider_name == "Bradesco"
    assert configuration.environment is Environment.SANDBOX


@pytest.mark.asyncio
async def test_test_connection(fake_bank, bradesco_gateway):
    """
    O teste de conexão sempre obtém um token novo.
    """
    result = await bradesco_gateway.test_connection()

    assert result["environment"] == "sandbox"
    assert result["token_obtained"] is True
    assert result["token_preview"] == "token-1-..."
    assert result["response_time_ms"] >= 0
    assert 3500 <= result["expires_in"] <= 3540

    await bradesco_gateway.test_connection()
    assert fake_bank.count("token") == 2


@pytest.mark.asyncio
async def test_test_connection_with_rejected_credentials(fake_bank, bradesco_gateway):
    fake_bank.set_response("token", status=401, body={"error": "invalid_client"})

    with pytest.raises(AuthenticationFailedError):
        await bradesco_gateway.test_connection()


@pytest.mark.asyncio
async def test_services_share_token(fake_bank, bradesco_gateway):
    payer = BoletoPayer(
        name="José",
        document="12345678901",
        address=PayerAddress("Rua A", "Recife", "PE", "50000-000", "Boa Vista"),
    )

    await bradesco_gateway.create_pix_charge(10, "Maria", "12345678901")
    await bradesco_gateway.register_boleto(10, payer)
    await bradesco_gateway.query_pix_charge("f" * 32)
    await bradesco_gateway.query_boleto("00000000001")

    assert fake_bank.count("token") == 1
    assert bradesco_gateway.pix.token_manager is bradesco_gateway.boleto.token_manager


@pytest.mark.asyncio
async def test_disabled_gateway_propagates(fake_bank):
    store = InMemoryConfigStore([make_configuration_row(is_active=False, certificate="Y2VydA==")])
    gateway = BradescoGateway(ConfigurationCache(store, tenant=TENANT))
    try:
        with pytest.raises(GatewayDisabledError):
            await gateway.create_pix_charge(10, "Maria", "12345678901")
        with pytest.raises(GatewayDisabledError):
            await gateway.query_boleto("00000000001")
    finally:
        await gateway.close()

    assert fake_bank.requests == []
