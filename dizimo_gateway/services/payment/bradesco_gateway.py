# D:\DizimoGateway\dizimo_gateway\services\payment\bradesco_gateway.py

"""
bradesco_gateway.py

Implementação da interface de gateway de pagamento para o Bradesco.
Reúne o gerenciador de token OAuth2 (mTLS), o serviço PIX e o serviço de Boleto
sobre uma única configuração, transporte e destino de auditoria.

Classes:
    BradescoGateway: Implementação do gateway Bradesco.
"""

import time
from typing import Any, Dict, Optional

from .audit_logger import AuditLogger, NullAuditLogger
from .boleto_service import BoletoService
from .config_store import ConfigurationCache
from .gateway_interface import PaymentGatewayInterface
from .mtls_transport import MtlsTransportFactory
from .pix_service import PixService
from .request_executor import RequestExecutor
from .token_manager import TokenManager
from .types import (
    BoletoPayer,
    BoletoRegistrationResult,
    BoletoStatus,
    PixChargeResult,
    PixStatus,
    ProviderConfiguration,
)


class BradescoGateway(PaymentGatewayInterface):
    """
    Implementação específica do gateway Bradesco (PIX + Boleto registrado).
    """

    GATEWAY_NAME = "Bradesco"

    def __init__(
        self,
        config_cache: ConfigurationCache,
        transport: Optional[MtlsTransportFactory] = None,
        executor: Optional[RequestExecutor] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.config_cache = config_cache
        self.transport = transport or MtlsTransportFactory()
        self.executor = executor or RequestExecutor()
        self.audit = audit or NullAuditLogger()

        self.token_manager = TokenManager(
            self.GATEWAY_NAME, config_cache, self.transport, self.executor, self.audit,
        )
        dependencies = (self.GATEWAY_NAME, config_cache, self.token_manager, self.transport, self.executor, self.audit)
        self.pix = PixService(*dependencies)
        self.boleto = BoletoService(*dependencies)

    async def get_gateway_config(self) -> ProviderConfiguration:
        return await self.config_cache.get_configuration(self.GATEWAY_NAME)

    async def create_pix_charge(
        self,
        amount,
        payer_name: str,
        payer_document: str,
        pix_key: Optional[str] = None
    ) -> PixChargeResult:
        return await self.pix.create_charge(amount, pix_key, payer_name, payer_document)

    async def query_pix_charge(self, txid: str) -> PixStatus:
        return await self.pix.query_charge(txid)

    async def register_boleto(self, amount, payer: BoletoPayer) -> BoletoRegistrationResult:
        return await self.boleto.register_boleto(amount, payer)

    async def query_boleto(self, nosso_numero: str) -> BoletoStatus:
        return await self.boleto.query_boleto(nosso_numero)

    async def test_connection(self) -> Dict[str, Any]:
        """
        Testa a conexão com o Bradesco obtendo um token OAuth2 novo.

        Returns:
            Dict[str, Any]: environment, token_obtained, token_preview,
            response_time_ms e expires_in (segundos).

        Raises:
            GatewayError: Se a configuração, o certificado ou as credenciais falharem.
        """
        configuration = await self.get_gateway_config()
        self.token_manager.invalidate()
        started = time.monotonic()
        token = await self.token_manager.get_token()
        elapsed_ms = int((time.monotonic() - started) * 1000)

        return {
            "environment": configuration.environment.value,
            "token_obtained": bool(token.access_token),
            "token_preview": f"{token.access_token[:8]}..." if token.access_token else None,
            "response_time_ms": elapsed_ms,
            "expires_in": max(0, round(token.expires_at - self.token_manager.clock())),
        }

    async def close(self) -> None:
        await self.transport.close()
