# D:\DizimoGateway\dizimo_gateway\services\payment\token_manager.py

"""
token_manager.py

Obtenção e cache do token OAuth2 (client_credentials) do banco sobre TLS mútuo.

O token é reaproveitado enquanto `agora < expires_at`, onde `expires_at` é o
`expires_in` informado pelo banco menos uma margem de segurança (60 segundos). A
renovação é protegida por um asyncio.Lock: chamadores concorrentes que encontram o
token vencido aguardam uma única ida ao servidor de autenticação.

Modos de envio das credenciais:
    - sandbox: client_id e client_secret no corpo (form-urlencoded).
    - homologação e produção: cabeçalho HTTP Basic, corpo apenas com grant_type.

Classes:
    TokenManager: Acesso ao token OAuth2 com renovação transparente.
"""

import asyncio
import logging
import time
from base64 import b64encode
from typing import Callable, Optional

from dizimo_gateway.config.settings import TOKEN_SAFETY_MARGIN_SECONDS
from dizimo_gateway.utils.log_sanitizer import safe_log

from .audit_logger import AuditEntry, AuditLogger, NullAuditLogger, audit_request, audit_response
from .config_store import ConfigurationCache
from .environments import get_auth_url
from .errors import AuthenticationFailedError
from .mtls_transport import MtlsTransportFactory
from .request_executor import RequestExecutor
from .types import OAuthToken, ProviderConfiguration

logger = logging.getLogger(__name__)


def build_token_request(configuration: ProviderConfiguration):
    """
    Monta cabeçalhos e corpo da requisição de token conforme o ambiente.

    Returns:
        Tuple[Dict[str, str], Dict[str, str]]: Cabeçalhos e campos do formulário.
    """
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    form = {"grant_type": "client_credentials"}

    if configuration.is_sandbox:
        form["client_id"] = configuration.client_id
        form["client_secret"] = configuration.client_secret
    else:
        credentials = f"{configuration.client_id}:{configuration.client_secret}".encode("utf-8")
        headers["Authorization"] = f"Basic {b64encode(credentials).decode('ascii')}"

    return headers, form


class TokenManager:
    """
    Gerencia o token OAuth2 de um gateway.
    """

    def __init__(
        self,
        provider_name: str,
        config_cache: ConfigurationCache,
        transport: MtlsTransportFactory,
        executor: Optional[RequestExecutor] = None,
        audit: Optional[AuditLogger] = None,
        safety_margin_seconds: float = TOKEN_SAFETY_MARGIN_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.provider_name = provider_name
        self.config_cache = config_cache
        self.transport = transport
        self.executor = executor or RequestExecutor()
        self.audit = audit or NullAuditLogger()
        self.safety_margin_seconds = safety_margin_seconds
        self.clock = clock
        self._token: Optional[OAuthToken] = None
        self._lock = asyncio.Lock()

    @property
    def cached_token(self) -> Optional[OAuthToken]:
        return self._token

    def invalidate(self) -> None:
        """Descarta o token em cache, forçando nova autenticação na próxima chamada."""
        self._token = None

    async def get_token(self) -> OAuthToken:
        """
        Retorna um token válido, autenticando novamente somente se necessário.

        Returns:
            OAuthToken: Token com access_token e expires_at.

        Raises:
            ConfigurationError: Se a configuração do gateway for inválida.
            AuthenticationFailedError: Se o banco recusar as credenciais ou o certificado.
            GatewayTimeoutError: Se o servidor de autenticação não responder a tempo.
            TransportFailureError: Se houver falha de rede.
        """
        token = self._token
        if token is not None and token.is_valid(self.clock()):
            return token

        async with self._lock:
            token = self._token
            if token is not None and token.is_valid(self.clock()):
                return token
            self._token = await self._authenticate()
            return self._token

    async def _authenticate(self) -> OAuthToken:
        configuration = await self.config_cache.get_configuration(self.provider_name)
        auth_url = get_auth_url(configuration.environment)
        headers, form = build_token_request(configuration)

        await audit_request(self.audit, AuditEntry(
            operation_type="token",
            method="POST",
            endpoint=auth_url,
            request_body={"grant_type": "client_credentials", "environment": configuration.environment.value},
        ))

        session = await self.transport.get_session(configuration)
        issued_at = self.clock()
        response = await self.executor.execute(session, "POST", auth_url, headers=headers, data=form)

        if not response.ok:
            await audit_response(self.audit, AuditEntry(
                operation_type="token",
                method="POST",
                endpoint=auth_url,
                status_code=response.status,
                response_body=response.text,
                error_message=f"HTTP {response.status}",
            ))
            safe_log(logger, logging.ERROR, "[GATEWAY_AUTH] Falha na autenticação OAuth2", {
                "status": response.status,
                "environment": configuration.environment.value,
            })
            raise AuthenticationFailedError(details={"status_code": response.status})

        try:
            data = response.json()
            access_token = data["access_token"]
            expires_in = float(data["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            safe_log(logger, logging.ERROR, "[GATEWAY_AUTH] Resposta de token inválida", {
                "error": type(e).__name__,
            })
            raise AuthenticationFailedError(details={"reason": "invalid_token_response"})

        if not isinstance(access_token, str) or not access_token or not expires_in > 0:
            safe_log(logger, logging.ERROR, "[GATEWAY_AUTH] Resposta de token inválida", {
                "has_access_token": bool(access_token),
                "expires_in": expires_in,
            })
            raise AuthenticationFailedError(details={"reason": "invalid_token_response"})

        token = OAuthToken(
            access_token=access_token,
            expires_at=issued_at + expires_in - self.safety_margin_seconds,
            issued_at=issued_at,
        )

        await audit_response(self.audit, AuditEntry(
            operation_type="token",
            method="POST",
            endpoint=auth_url,
            status_code=response.status,
            response_body={"token_type": data.get("token_type"), "expires_in": data.get("expires_in")},
        ))
        safe_log(logger, logging.INFO, "[GATEWAY_AUTH] Token OAuth2 obtido e cacheado", {
            "environment": configuration.environment.value,
            "expires_in": expires_in,
        })
        return token
