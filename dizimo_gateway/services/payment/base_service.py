# D:\DizimoGateway\dizimo_gateway\services\payment\base_service.py

"""
base_service.py

Base comum dos serviços PIX e Boleto: resolução de configuração, token, sessão mTLS
e interpretação das respostas de erro do banco.

Classes:
    BankContext: Configuração, token e sessão de uma operação.
    BankServiceBase: Dependências e utilitários compartilhados.

Functions:
    parse_provider_error(response, action) -> ProviderRejectedError
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from dizimo_gateway.utils.log_sanitizer import safe_log

from .audit_logger import AuditLogger, NullAuditLogger
from .config_store import ConfigurationCache
from .errors import ProviderRejectedError
from .mtls_transport import MtlsTransportFactory
from .request_executor import BankResponse, RequestExecutor
from .token_manager import TokenManager
from .types import OAuthToken, ProviderConfiguration

logger = logging.getLogger(__name__)


def parse_provider_error(response: BankResponse, action: str) -> ProviderRejectedError:
    """
    Converte uma resposta não-2xx do banco em ProviderRejectedError.

    Procura, nesta ordem, `detail`, a lista `violacoes` (razão de cada violação) e
    `mensagem`. Se o corpo não for JSON, a mensagem fica genérica com o status HTTP.

    Args:
        response (BankResponse): Resposta recebida.
        action (str): Descrição da operação (ex.: "criar cobrança PIX").

    Returns:
        ProviderRejectedError: Exceção pronta para ser levantada.
    """
    try:
        data = response.json()
    except ValueError:
        safe_log(logger, logging.ERROR, "[GATEWAY_PARSE_ERROR] Não foi possível interpretar o erro do banco", {
            "status": response.status,
            "response": response.text[:200],
        })
        return ProviderRejectedError(f"Erro {response.status} ao {action}", status_code=response.status)

    reason = None
    if isinstance(data, dict):
        violations = data.get("violacoes") or data.get("violations") or []
        if data.get("detail"):
            reason = str(data["detail"])
        elif isinstance(violations, list) and violations:
            reasons = [
                str(v.get("razao") or v.get("reason") or "")
                for v in violations if isinstance(v, dict)
            ]
            reason = ", ".join(r for r in reasons if r) or None
        elif data.get("mensagem"):
            reason = str(data["mensagem"])

    if reason:
        return ProviderRejectedError(f"Erro ao {action}: {reason}", status_code=response.status)
    return ProviderRejectedError(f"Erro {response.status} ao {action}", status_code=response.status)


@dataclass(frozen=True)
class BankContext:
    configuration: ProviderConfiguration
    token: OAuthToken
    session: aiohttp.ClientSession


class BankServiceBase:
    """
    Dependências compartilhadas pelos serviços de pagamento do banco.
    """

    def __init__(
        self,
        provider_name: str,
        config_cache: ConfigurationCache,
        token_manager: TokenManager,
        transport: MtlsTransportFactory,
        executor: Optional[RequestExecutor] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.provider_name = provider_name
        self.config_cache = config_cache
        self.token_manager = token_manager
        self.transport = transport
        self.executor = executor or RequestExecutor()
        self.audit = audit or NullAuditLogger()

    async def _context(self) -> BankContext:
        configuration = await self.config_cache.get_configuration(self.provider_name)
        token = await self.token_manager.get_token()
        session = await self.transport.get_session(configuration)
        return BankContext(configuration, token, session)

    @staticmethod
    def _headers(token: OAuthToken, json_body: bool = False, accept: Optional[str] = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {token.access_token}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if accept:
            headers["Accept"] = accept
        return headers

    @staticmethod
    def _json_or_empty(response: BankResponse) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
