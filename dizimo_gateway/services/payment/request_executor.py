# D:\DizimoGateway\dizimo_gateway\services\payment\request_executor.py

"""
request_executor.py

Executor das chamadas HTTP ao banco com tempo limite rígido.

Toda chamada é envolvida por um prazo (15 segundos por padrão). Ao estourar o prazo a
requisição em andamento é cancelada e a conexão descartada. As falhas são normalizadas
em três categorias:

    - GatewayTimeoutError: o prazo expirou (pode tentar novamente).
    - TransportFailureError: falha de DNS, conexão ou TLS (pode tentar novamente).
    - ProviderRejectedError: o banco respondeu com status diferente de 2xx
      (levantado pelos serviços, que interpretam o corpo do erro).

Cancelamentos vindos de quem chama (asyncio.CancelledError) são sempre propagados.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp

from dizimo_gateway.config.settings import BANK_TIMEOUT_SECONDS

from .errors import GatewayTimeoutError, TransportFailureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankResponse:
    status: int
    text: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """
        Decodifica o corpo como JSON.

        Raises:
            ValueError: Se o corpo não for JSON válido.
        """
        return json.loads(self.text)


class RequestExecutor:
    """
    Executa requisições HTTP com prazo e taxonomia de erros estável.
    """

    def __init__(self, timeout_seconds: float = BANK_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]],
        data: Any,
        json_body: Any,
    ) -> BankResponse:
        async with session.request(method, url, headers=headers, data=data, json=json_body) as response:
            text = await response.text()
            return BankResponse(status=response.status, text=text, headers=dict(response.headers))

    async def execute(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        data: Any = None,
        json_body: Any = None,
        timeout_seconds: Optional[float] = None,
    ) -> BankResponse:
        """
        Envia a requisição e devolve status e corpo em texto.

        Args:
            session (aiohttp.ClientSession): Sessão (normalmente mTLS) a ser usada.
            method (str): Método HTTP.
            url (str): URL completa.
            headers (dict, optional): Cabeçalhos da requisição.
            data (Any, optional): Corpo form-encoded ou bruto.
            json_body (Any, optional): Corpo serializado como JSON.
            timeout_seconds (float, optional): Prazo específico desta chamada.

        Returns:
            BankResponse: Status e corpo da resposta, qualquer que seja o status.

        Raises:
            GatewayTimeoutError: Se o prazo expirar.
            TransportFailureError: Se houver falha de rede.
        """
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        try:
            return await asyncio.wait_for(
                self._send(session, method, url, headers, data, json_body),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.error("[GATEWAY_TIMEOUT] Timeout ao comunicar com a API do banco: %s %s", method, url)
            raise GatewayTimeoutError(details={"method": method, "url": url, "timeout": timeout})
        except (aiohttp.ClientError, OSError) as e:
            logger.error("[GATEWAY_TRANSPORT] Falha de rede em %s %s: %s", method, url, e)
            raise TransportFailureError(details={"method": method, "url": url, "error": type(e).__name__})
