# D:\DizimoGateway\dizimo_gateway\services\payment\gateway_router.py

"""
gateway_router.py

Seleção do gateway de pagamento ativo da empresa.

Apenas um gateway deve estar ativo por empresa. O roteador não desempata: se o
armazenamento tiver dois registros ativos, vale o primeiro devolvido pela consulta.

Classes:
    GatewayRouter: Descobre o gateway ativo e valida se ele é suportado.
"""

import logging

from dizimo_gateway.config.settings import COMPANY_ID

from .config_store import ConfigurationStore
from .errors import NoActiveGatewayError, UnsupportedGatewayError
from .gateway_factory import PaymentGatewayFactory

logger = logging.getLogger(__name__)


class GatewayRouter:
    """
    Roteador de gateways com base na configuração persistida.
    """

    def __init__(self, store: ConfigurationStore, tenant: str = COMPANY_ID):
        self.store = store
        self.tenant = tenant

    async def get_active_gateway(self) -> str:
        """
        Retorna o nome do gateway ativo da empresa.

        Returns:
            str: Nome do gateway, como armazenado (ex.: "Bradesco").

        Raises:
            NoActiveGatewayError: Se nenhum gateway estiver ativo.
            UnsupportedGatewayError: Se o gateway ativo não for implementado aqui.
        """
        gateway_name = await self.store.find_active_provider(self.tenant)

        if not gateway_name:
            logger.error("[GATEWAY_ROUTER] Nenhum gateway ativo para a empresa %s", self.tenant)
            raise NoActiveGatewayError()

        if not PaymentGatewayFactory.is_supported(gateway_name):
            logger.error("[GATEWAY_ROUTER] Gateway ativo não suportado: %s", gateway_name)
            raise UnsupportedGatewayError(gateway_name)

        return gateway_name
