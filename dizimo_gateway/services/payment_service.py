# D:\DizimoGateway\dizimo_gateway\services\payment_service.py
"""
payment_service.py

Módulo responsável pela coordenação dos serviços de pagamento bancário, selecionando
o gateway ativo da empresa. Este serviço atua como uma fachada para a aplicação
hospedeira, que não precisa conhecer o banco utilizado.

Classes:
    PaymentService: Serviço central para criação e consulta de pagamentos PIX e Boleto.

Functions:
    map_pix_status(status) -> PaymentOutcome
    map_boleto_status(status) -> PaymentOutcome
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from dizimo_gateway.config.settings import COMPANY_ID
from dizimo_gateway.services.payment.audit_logger import AuditLogger, DatabaseAuditLogger
from dizimo_gateway.services.payment.config_store import (
    ConfigurationCache,
    ConfigurationStore,
    GatewayConfigStore,
)
from dizimo_gateway.services.payment.gateway_factory import PaymentGatewayFactory
from dizimo_gateway.services.payment.gateway_interface import PaymentGatewayInterface
from dizimo_gateway.services.payment.gateway_router import GatewayRouter
from dizimo_gateway.services.payment.mtls_transport import MtlsTransportFactory
from dizimo_gateway.services.payment.request_executor import RequestExecutor
from dizimo_gateway.services.payment.types import (
    BoletoPayer,
    BoletoSettlementStatus,
    PaymentOutcome,
    PayerAddress,
    PixChargeStatus,
)

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("pix", "boleto")


def map_pix_status(status: PixChargeStatus) -> PaymentOutcome:
    """Converte o status PIX do banco no status interno da transação."""
    if status is PixChargeStatus.COMPLETED:
        return PaymentOutcome.APPROVED
    if status in (PixChargeStatus.REMOVED_BY_PAYEE, PixChargeStatus.REMOVED_BY_PSP):
        return PaymentOutcome.REFUSED
    return PaymentOutcome.PENDING


def map_boleto_status(status: BoletoSettlementStatus) -> PaymentOutcome:
    """Converte o status do boleto no status interno da transação."""
    if status is BoletoSettlementStatus.PAID:
        return PaymentOutcome.APPROVED
    if status in (BoletoSettlementStatus.OVERDUE, BoletoSettlementStatus.CANCELLED):
        return PaymentOutcome.REFUSED
    return PaymentOutcome.PENDING


def _payer_from_details(customer_details: Dict[str, Any]) -> BoletoPayer:
    missing = [
        key for key in ("name", "document", "address", "city", "state", "zip", "district")
        if not str(customer_details.get(key) or "").strip()
    ]
    if missing:
        raise ValueError(f"Dados do pagador incompletos: {', '.join(missing)}")
    return BoletoPayer(
        name=customer_details["name"],
        document=customer_details["document"],
        address=PayerAddress(
            street=customer_details["address"],
            city=customer_details["city"],
            state=customer_details["state"],
            zip=customer_details["zip"],
            district=customer_details["district"],
        ),
    )


class PaymentService:
    """
    Serviço central para processamento de pagamentos bancários.

    Esta classe fornece uma interface unificada para as operações de pagamento,
    independentemente do gateway utilizado. As instâncias de gateway (e portanto o
    token OAuth2 e as sessões mTLS) são compartilhadas entre as chamadas.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        tenant: str = COMPANY_ID,
        audit: Optional[AuditLogger] = None,
        transport: Optional[MtlsTransportFactory] = None,
        executor: Optional[RequestExecutor] = None,
        config_cache: Optional[ConfigurationCache] = None,
    ):
        """
        Inicializa o serviço de pagamento.

        Args:
            store (ConfigurationStore): Armazenamento das configurações de gateway.
            tenant (str): Identificador da empresa.
            audit (AuditLogger, optional): Destino da auditoria das requisições.
            transport (MtlsTransportFactory, optional): Fábrica de sessões mTLS.
            executor (RequestExecutor, optional): Executor com tempo limite.
            config_cache (ConfigurationCache, optional): Cache de configuração.
        """
        self.store = store
        self.tenant = tenant
        self.audit = audit
        self.transport = transport or MtlsTransportFactory()
        self.executor = executor or RequestExecutor()
        self.config_cache = config_cache or ConfigurationCache(store, tenant=tenant)
        self.router = GatewayRouter(store, tenant=tenant)
        self._gateways: Dict[str, PaymentGatewayInterface] = {}

    @classmethod
    def from_session_maker(cls, session_maker: async_sessionmaker, tenant: str = COMPANY_ID) -> "PaymentService":
        """
        Cria o serviço com armazenamento e auditoria no banco de dados.

        Args:
            session_maker (async_sessionmaker): Criador de sessões assíncronas.
            tenant (str): Identificador da empresa.
        """
        return cls(
            GatewayConfigStore(session_maker),
            tenant=tenant,
            audit=DatabaseAuditLogger(session_maker),
        )

    def get_gateway(self, gateway_name: str) -> PaymentGatewayInterface:
        """
        Retorna (criando na primeira vez) a instância do gateway informado.

        Raises:
            UnsupportedGatewayError: Se o gateway não for suportado.
        """
        key = gateway_name.lower()
        gateway = self._gateways.get(key)
        if gateway is None:
            gateway = PaymentGatewayFactory.get_gateway(
                gateway_name,
                self.config_cache,
                transport=self.transport,
                executor=self.executor,
                audit=self.audit,
            )
            self._gateways[key] = gateway
        return gateway

    async def get_active_gateway(self) -> PaymentGatewayInterface:
        """
        Retorna o gateway ativo da empresa.

        Raises:
            NoActiveGatewayError: Se nenhum gateway estiver ativo.
            UnsupportedGatewayError: Se o gateway ativo não for suportado.
        """
        gateway_name = await self.router.get_active_gateway()
        return self.get_gateway(gateway_name)

    async def create_payment(self, payment_method: str, amount, customer_details: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cria um pagamento PIX ou Boleto no gateway ativo.

        Args:
            payment_method (str): "pix" ou "boleto".
            amount: Valor em reais.
            customer_details (Dict): Dados do pagador:
                - name, document (obrigatórios)
                - address, city, state, zip, district (obrigatórios para boleto)

        Returns:
            Dict[str, Any]: gateway, payment_method, gateway_transaction_id, status e os
            dados de exibição (copia-e-cola/QR Code ou linha digitável/código de barras).

        Raises:
            ValueError: Se o método ou os dados do pagador forem inválidos.
            GatewayError: Erros de configuração, roteamento, autenticação, rede ou recusa do banco.
        """
        method = (payment_method or "").lower()
        if method not in PAYMENT_METHODS:
            raise ValueError(f"Método de pagamento não suportado: {payment_method}")
        if not str(customer_details.get("name") or "").strip() or not str(customer_details.get("document") or "").strip():
            raise ValueError("Nome e documento do pagador são obrigatórios")

        gateway = await self.get_active_gateway()

        if method == "pix":
            result = await gateway.create_pix_charge(
                amount,
                customer_details["name"],
                customer_details["document"],
                pix_key=customer_details.get("pix_key"),
            )
            logger.info("Cobrança PIX criada no gateway %s: %s", gateway.GATEWAY_NAME, result.txid)
            return {
                "gateway": gateway.GATEWAY_NAME,
                "payment_method": method,
                "gateway_transaction_id": result.txid,
                "status": map_pix_status(result.status).value,
                "location": result.location_url,
                "copy_paste_code": result.copy_paste_code,
                "qr_code_image": result.qr_image,
            }

        boleto = await gateway.register_boleto(amount, _payer_from_details(customer_details))
        logger.info("Boleto registrado no gateway %s: %s", gateway.GATEWAY_NAME, boleto.nosso_numero)
        return {
            "gateway": gateway.GATEWAY_NAME,
            "payment_method": method,
            "gateway_transaction_id": boleto.nosso_numero,
            "status": PaymentOutcome.PENDING.value,
            "digitable_line": boleto.digitable_line,
            "barcode": boleto.barcode,
            "url": boleto.url,
        }

    async def query_payment(self, payment_method: str, gateway_transaction_id: str) -> Dict[str, Any]:
        """
        Consulta o status de um pagamento no gateway ativo.

        Falhas de comunicação não levantam erro: o resultado volta como pendente com
        `degraded=True`, para que rotinas de polling sigam funcionando.

        Args:
            payment_method (str): "pix" ou "boleto".
            gateway_transaction_id (str): txid ou nosso número.

        Returns:
            Dict[str, Any]: gateway_transaction_id, provider_status, status (interno),
            degraded e dados de pagamento quando liquidado.
        """
        method = (payment_method or "").lower()
        if method not in PAYMENT_METHODS:
            raise ValueError(f"Método de pagamento não suportado: {payment_method}")

        gateway = await self.get_active_gateway()

        if method == "pix":
            pix_status = await gateway.query_pix_charge(gateway_transaction_id)
            return {
                "gateway_transaction_id": pix_status.txid,
                "provider_status": pix_status.status.value,
                "status": map_pix_status(pix_status.status).value,
                "degraded": pix_status.degraded,
                "amount": pix_status.original_amount,
                "settlements": [
                    {"end_to_end_id": s.end_to_end_id, "amount": s.amount, "paid_at": s.paid_at}
                    for s in pix_status.settlements
                ],
            }

        boleto_status = await gateway.query_boleto(gateway_transaction_id)
        return {
            "gateway_transaction_id": boleto_status.nosso_numero,
            "provider_status": boleto_status.status.value,
            "status": map_boleto_status(boleto_status.status).value,
            "degraded": boleto_status.degraded,
            "paid_amount": str(boleto_status.paid_amount) if boleto_status.paid_amount is not None else None,
            "paid_at": boleto_status.paid_at,
        }

    async def test_connection(self, gateway_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Testa a conexão com o gateway informado (ou com o ativo).

        Returns:
            Dict[str, Any]: Detalhes do teste (ambiente, tempo de resposta, validade do token).
        """
        if gateway_name:
            gateway = self.get_gateway(gateway_name)
        else:
            gateway = await self.get_active_gateway()
        details = await gateway.test_connection()
        return {"gateway": gateway.GATEWAY_NAME, **details}

    async def close(self) -> None:
        """Fecha as sessões de rede abertas."""
        await self.transport.close()
