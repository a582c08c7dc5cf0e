# D:\DizimoGateway\dizimo_gateway\services\payment\gateway_factory.py

"""
gateway_factory.py

Este módulo fornece uma factory para selecionar a implementação de gateway
de pagamento apropriada, com base no nome do gateway solicitado.

Classes:
    PaymentGatewayFactory: Factory para criação de instâncias de gateway de pagamento.
"""

from typing import Dict

from .bradesco_gateway import BradescoGateway
from .errors import UnsupportedGatewayError
from .gateway_interface import PaymentGatewayInterface


class PaymentGatewayFactory:
    """
    Factory para criar instâncias de gateways de pagamento.

    Esta classe facilita a obtenção de implementações específicas de gateway
    com base no nome do gateway solicitado, sem que o código cliente precise
    conhecer os detalhes de implementação de cada gateway.
    """

    # Registra os gateways suportados
    _GATEWAYS = {
        "bradesco": BradescoGateway,
    }

    @classmethod
    def is_supported(cls, gateway_name: str) -> bool:
        return (gateway_name or "").lower() in cls._GATEWAYS

    @classmethod
    def get_gateway(cls, gateway_name: str, *args, **kwargs) -> PaymentGatewayInterface:
        """
        Retorna uma instância de gateway de pagamento com base no nome.

        Args:
            gateway_name (str): Nome do gateway a ser instanciado ('Bradesco', etc.)
            *args, **kwargs: Dependências repassadas ao construtor do gateway.

        Returns:
            PaymentGatewayInterface: Instância do gateway.

        Raises:
            UnsupportedGatewayError: Se o gateway solicitado não for suportado.
        """
        gateway_class = cls._GATEWAYS.get((gateway_name or "").lower())

        if not gateway_class:
            raise UnsupportedGatewayError(gateway_name)

        return gateway_class(*args, **kwargs)

    @classmethod
    def register_gateway(cls, gateway_name: str, gateway_class: type) -> None:
        """
        Registra um novo tipo de gateway na factory.

        Args:
            gateway_name (str): Nome do gateway a ser registrado.
            gateway_class (type): Classe que implementa PaymentGatewayInterface.

        Raises:
            TypeError: Se a classe fornecida não implementar PaymentGatewayInterface.
        """
        # Verifica se a classe implementa a interface
        if not isinstance(gateway_class, type) or not issubclass(gateway_class, PaymentGatewayInterface):
            raise TypeError(
                f"A classe {getattr(gateway_class, '__name__', gateway_class)} "
                f"deve implementar PaymentGatewayInterface"
            )

        cls._GATEWAYS[gateway_name.lower()] = gateway_class

    @classmethod
    def get_supported_gateways(cls) -> Dict[str, type]:
        """
        Retorna um dicionário com todos os gateways suportados.

        Returns:
            Dict[str, type]: Dicionário com os nomes dos gateways como chaves
                            e as classes correspondentes como valores.
        """
        return dict(cls._GATEWAYS)
