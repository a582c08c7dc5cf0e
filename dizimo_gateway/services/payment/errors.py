# D:\DizimoGateway\dizimo_gateway\services\payment\errors.py

"""
errors.py

Hierarquia de exceções da camada de integração com gateways bancários.

Toda exceção carrega uma mensagem em português, segura para ser exibida ao usuário
final, e um dicionário `details` destinado apenas aos logs. O atributo de classe
`retryable` indica se o chamador pode tentar novamente na próxima operação.

Classes:
    GatewayError: Base de todos os erros de gateway.
    ConfigurationError: Base dos erros de configuração (exigem ação do operador).
    NotConfiguredError, GatewayDisabledError, IncompleteCredentialsError.
    AuthenticationFailedError: Falha na obtenção do token OAuth2.
    GatewayTimeoutError: Tempo limite excedido na comunicação com o banco.
    TransportFailureError: Falha de rede (DNS, conexão, TLS).
    ProviderRejectedError: O banco respondeu com status diferente de 2xx.
    RoutingError: Base dos erros de seleção de gateway.
    NoActiveGatewayError, UnsupportedGatewayError.
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Erro base da integração com gateways de pagamento.
    """

    default_message = "Erro ao comunicar com o gateway de pagamento."
    retryable = False

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(GatewayError):
    """Erro de configuração do gateway. Não adianta tentar novamente."""


class NotConfiguredError(ConfigurationError):
    """Nenhuma configuração encontrada para o gateway."""

    def __init__(self, gateway_name: str):
        super().__init__(
            f"Gateway {gateway_name} não configurado. Configure em /admin/gateways/{gateway_name.lower()}",
            {"gateway_name": gateway_name},
        )
        self.gateway_name = gateway_name


class GatewayDisabledError(ConfigurationError):
    """A configuração existe, mas o gateway está desativado."""

    def __init__(self, gateway_name: str):
        super().__init__(
            f"Gateway {gateway_name} está desativado. Ative em /admin/gateways/{gateway_name.lower()}",
            {"gateway_name": gateway_name},
        )
        self.gateway_name = gateway_name


class IncompleteCredentialsError(ConfigurationError):
    """Algum campo obrigatório da configuração está vazio."""

    def __init__(self, gateway_name: str, missing_fields):
        missing = sorted(missing_fields)
        super().__init__(
            f"Configuração do gateway {gateway_name} incompleta ({', '.join(missing)}). "
            f"Configure em /admin/gateways/{gateway_name.lower()}",
            {"gateway_name": gateway_name, "missing_fields": missing},
        )
        self.gateway_name = gateway_name
        self.missing_fields = missing


class AuthenticationFailedError(GatewayError):
    """Falha na autenticação OAuth2 (credenciais ou certificado)."""

    default_message = (
        "Erro na autenticação OAuth2 com o banco. "
        "Verifique as credenciais e o certificado digital."
    )
    retryable = True


class GatewayTimeoutError(GatewayError):
    """O banco não respondeu dentro do tempo limite."""

    default_message = "Timeout ao comunicar com a API do banco. Tente novamente."
    retryable = True


class TransportFailureError(GatewayError):
    """Falha de rede ao comunicar com o banco."""

    default_message = "Não foi possível conectar à API do banco. Tente novamente."
    retryable = True


class ProviderRejectedError(GatewayError):
    """O banco recusou a requisição (resposta diferente de 2xx)."""

    default_message = "O banco recusou a operação."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if status_code is not None:
            details.setdefault("status_code", status_code)
        super().__init__(message, details)
        self.status_code = status_code


class RoutingError(GatewayError):
    """Erro na seleção do gateway ativo."""


class NoActiveGatewayError(RoutingError):
    """Nenhum gateway ativo para a empresa."""

    default_message = "Nenhum gateway de pagamento está ativo. Configure em /admin/gateways/"


class UnsupportedGatewayError(RoutingError):
    """O gateway ativo não é suportado por esta integração."""

    def __init__(self, gateway_name: str):
        super().__init__(
            f'Gateway "{gateway_name}" não é suportado pelo sistema.',
            {"gateway_name": gateway_name},
        )
        self.gateway_name = gateway_name
