# D:\DizimoGateway\dizimo_gateway\tests\test_payment_service.py

"""
test_payment_service.py

Módulo de testes para o serviço de pagamento (PaymentService) que coordena
as operações de pagamento usando o gateway ativo da empresa.

Testes:
    - Mapeamento de status do banco para o status interno
    - Criação de pagamentos PIX e Boleto pelo gateway ativo
    - Consulta de pagamentos (incluindo consulta degradada)
    - Erros de roteamento e de dados do pagador
    - Teste de conexão
"""

import pytest
import pytest_asyncio

from dizimo_gateway.services.payment.errors import NoActiveGatewayError, UnsupportedGatewayError
from dizimo_gateway.services.payment.request_executor import RequestExecutor
from dizimo_gateway.services.payment.types import (
    BoletoSettlementStatus,
    PaymentOutcome,
    PixChargeStatus,
)
from dizimo_gateway.services.payment_service import (
    PaymentService,
    map_boleto_status,
    map_pix_status,
)
from dizimo_gateway.tests.utils.bank_utils import (
    TENANT,
    FakeBank,
    InMemoryConfigStore,
    make_configuration_row,
)

BOLETO_CUSTOMER = {
    "name": "José Pereira",
    "document": "123.456.789-01",
    "address": "Rua das Flores, 100",
    "city": "São Paulo",
    "state": "SP",
    "zip": "01310-100",
    "district": "Centro",
}


@pytest_asyncio.fixture
async def payment_service(fake_bank, config_store):
    """
    Serviço de pagamento com o Bradesco ativo e apontando para o banco simulado.
    """
    service = PaymentService(config_store, tenant=TENANT, executor=RequestExecutor(timeout_seconds=2))
    yield service
    await service.close()


@pytest.mark.parametrize("status, expected", [
    (PixChargeStatus.ACTIVE, PaymentOutcome.PENDING),
    (PixChargeStatus.COMPLETED, PaymentOutcome.APPROVED),
    (PixChargeStatus.REMOVED_BY_PAYEE, PaymentOutcome.REFUSED),
    (PixChargeStatus.REMOVED_BY_PSP, PaymentOutcome.REFUSED),
])
def test_map_pix_status(status, expected):
    assert map_pix_status(status) is expected


@pytest.mark.parametrize("status, expected", [
    (BoletoSettlementStatus.REGISTERED, PaymentOutcome.PENDING),
    (BoletoSettlementStatus.PAID, PaymentOutcome.APPROVED),
    (BoletoSettlementStatus.OVERDUE, PaymentOutcome.REFUSED),
    (BoletoSettlementStatus.CANCELLED, PaymentOutcome.REFUSED),
])
def test_map_boleto_status(status, expected):
    assert map_boleto_status(status) is expected


@pytest.mark.asyncio
async def test_create_pix_payment(fake_bank, payment_service):
    result = await payment_service.create_payment("PIX", 50, {"name": "Maria", "document": "12345678901"})

    assert result["gateway"] == "Bradesco"
    assert result["payment_method"] == "pix"
    assert result["status"] == "pending"
    assert len(result["gateway_transaction_id"]) == 32
    assert result["copy_paste_code"] == FakeBank.COPY_PASTE_CODE
    assert fake_bank.calls("pix_create")[0].json["valor"]["original"] == "50.00"


@pytest.mark.asyncio
async def test_create_boleto_payment(fake_bank, payment_service):
    result = await payment_service.create_payment("boleto", 75.5, BOLETO_CUSTOMER)

    assert result["payment_method"] == "boleto"
    assert result["status"] == "pending"
    assert len(result["gateway_transaction_id"]) == 11
    assert result["digitable_line"]
    assert fake_bank.calls("boleto_register")[0].json["valorNominal"] == 7550


@pytest.mark.asyncio
async def test_create_boleto_without_address(fake_bank, payment_service):
    with pytest.raises(ValueError) as exc_info:
        await payment_service.create_payment("boleto", 10, {"name": "Maria", "document": "12345678901"})

    assert "address" in str(exc_info.value)
    assert fake_bank.count("boleto_register") == 0


@pytest.mark.asyncio
async def test_create_payment_invalid_method(payment_service):
    with pytest.raises(ValueError):
        await payment_service.create_payment("cartao", 10, {"name": "Maria", "document": "1"})


@pytest.mark.asyncio
async def test_create_payment_without_payer(payment_service):
    with pytest.raises(ValueError):
        await payment_service.create_payment("pix", 10, {"name": "", "document": "12345678901"})


@pytest.mark.asyncio
async def test_query_pix_payment_approved(fake_bank, payment_service):
    fake_bank.set_response("pix_query", status=200, body={
        "txid": "a" * 32,
        "status": "CONCLUIDA",
        "valor": {"original": "50.00"},
        "pix": [{"endToEndId": "E1", "valor": "50.00", "horario": "2024-05-10T10:00:00Z"}],
    })

    result = await payment_service.query_payment("pix", "a" * 32)

    assert result["provider_status"] == "CONCLUIDA"
    assert result["status"] == "approved"
    assert result["degraded"] is False
    assert result["settlements"][0]["end_to_end_id"] == "E1"


@pytest.mark.asyncio
async def test_query_boleto_payment_refused(fake_bank, payment_service):
    fake_bank.set_response("boleto_query", status=200, body={"nossoNumero": "00000000001", "status": "vencido"})

    result = await payment_service.query_payment("boleto", "00000000001")

    assert result["provider_status"] == "vencido"
    assert result["status"] == "refused"
    assert result["paid_amount"] is None


@pytest.mark.asyncio
async def test_query_payment_degraded_stays_pending(fake_bank, payment_service):
    fake_bank.set_response("pix_query", status=500, body={"detail": "erro"})

    result = await payment_service.query_payment("pix", "a" * 32)

    assert result["status"] == "pending"
    assert result["degraded"] is True


@pytest.mark.asyncio
async def test_no_active_gateway(fake_bank):
    store = InMemoryConfigStore([make_configuration_row(is_active=False, certificate="Y2VydA==")])
    service = PaymentService(store, tenant=TENANT)
    try:
        with pytest.raises(NoActiveGatewayError):
            await service.create_payment("pix", 10, {"name": "Maria", "document": "12345678901"})
    finally:
        await service.close()


@pytest.mark.asyncio
async def test_unsupported_active_gateway(fake_bank):
    store = InMemoryConfigStore([make_configuration_row(gateway_name="Cielo", certificate="Y2VydA==")])
    service = PaymentService(store, tenant=TENANT)
    try:
        with pytest.raises(UnsupportedGatewayError):
            await service.query_payment("pix", "a" * 32)
    finally:
        await service.close()

    assert fake_bank.requests == []


@pytest.mark.asyncio
async def test_gateway_instances_are_shared(payment_service):
    first = await payment_service.get_active_gateway()
    second = payment_service.get_gateway("BRADESCO")

    assert first is second


@pytest.mark.asyncio
async def test_test_connection(fake_bank, payment_service):
    result = await payment_service.test_connection()

    assert result["gateway"] == "Bradesco"
    assert result["token_obtained"] is True
    assert fake_bank.count("token") == 1


@pytest.mark.asyncio
async def test_from_session_maker(fake_bank, session_maker):
    """
    O serviço montado a partir do banco de dados lê a configuração e grava auditoria.
    """
    async with session_maker() as session:
        session.add(make_configuration_row())
        await session.commit()

    service = PaymentService.from_session_maker(session_maker, tenant=TENANT)
    try:
        result = await service.create_payment("pix", 10, {"name": "Maria", "document": "12345678901"})
    finally:
        await service.close()

    assert result["gateway"] == "Bradesco"
    assert fake_bank.count("pix_create") == 1
