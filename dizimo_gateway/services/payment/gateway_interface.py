# D:\DizimoGateway\dizimo_gateway\services\payment\gateway_interface.py

"""
gateway_interface.py

Módulo que define a interface base para os gateways bancários (PIX + Boleto).
Esta interface funciona como um contrato que todas as implementações
específicas de gateway devem seguir, garantindo consistência entre
diferentes bancos.

Classes:
    PaymentGatewayInterface: Interface abstrata base para gateways de pagamento.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .types import (
    BoletoPayer,
    BoletoRegistrationResult,
    BoletoStatus,
    PixChargeResult,
    PixStatus,
    ProviderConfiguration,
)


class PaymentGatewayInterface(ABC):
    """
    Interface abstrata base para implementações de gateway de pagamento.

    Cada gateway bancário deve implementar esta interface para garantir
    compatibilidade com o PaymentService.
    """

    GATEWAY_NAME = ""

    @abstractmethod
    async def get_gateway_config(self) -> ProviderConfiguration:
        """
        Obtém a configuração validada do gateway.

        Returns:
            ProviderConfiguration: Credenciais, certificado, chave PIX e ambiente.

        Raises:
            ConfigurationError: Se o gateway não estiver configurado, ativo ou completo.
        """
        pass

    @abstractmethod
    async def create_pix_charge(
        self,
        amount,
        payer_name: str,
        payer_document: str,
        pix_key: Optional[str] = None
    ) -> PixChargeResult:
        """
        Cria uma cobrança PIX imediata.

        Args:
            amount: Valor em reais.
            payer_name (str): Nome do pagador.
            payer_document (str): CPF do pagador.
            pix_key (str, optional): Chave PIX do recebedor (padrão: a da configuração).

        Returns:
            PixChargeResult: Dados da cobrança criada.
        """
        pass

    @abstractmethod
    async def query_pix_charge(self, txid: str) -> PixStatus:
        """
        Consulta uma cobrança PIX. Nunca levanta erro de comunicação.

        Args:
            txid (str): Identificador da cobrança.

        Returns:
            PixStatus: Status atual (ou sintético, se degradado).
        """
        pass

    @abstractmethod
    async def register_boleto(self, amount, payer: BoletoPayer) -> BoletoRegistrationResult:
        """
        Registra um boleto.

        Args:
            amount: Valor em reais.
            payer (BoletoPayer): Dados do pagador.

        Returns:
            BoletoRegistrationResult: Dados do boleto registrado.
        """
        pass

    @abstractmethod
    async def query_boleto(self, nosso_numero: str) -> BoletoStatus:
        """
        Consulta um boleto. Nunca levanta erro de comunicação.

        Args:
            nosso_numero (str): Número de controle do boleto.

        Returns:
            BoletoStatus: Status atual (ou sintético, se degradado).
        """
        pass

    @abstractmethod
    async def test_connection(self) -> Dict[str, Any]:
        """
        Testa credenciais e certificado obtendo um token.

        Returns:
            Dict[str, Any]: Ambiente, tempo de resposta e validade do token.
        """
        pass

    async def close(self) -> None:
        """Libera recursos de rede do gateway."""
        return None
