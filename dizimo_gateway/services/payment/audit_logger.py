# D:\DizimoGateway\dizimo_gateway\services\payment\audit_logger.py

"""
audit_logger.py

Registro de auditoria de toda requisição e resposta trocada com o banco.

O registro é "fire-and-forget": uma falha ao gravar a auditoria é logada e nunca
interrompe a operação de pagamento. Os corpos são sanitizados aqui, antes de chegar
ao destino, para que nenhum segredo dependa da disciplina de quem chama.

Classes:
    AuditEntry: Dados de uma requisição/resposta.
    AuditLogger: Contrato do destino de auditoria.
    NullAuditLogger: Destino que descarta os registros.
    DatabaseAuditLogger: Destino que grava na tabela gateway_logs.
"""

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Optional, Protocol

from sqlalchemy.ext.asyncio import async_sessionmaker

from dizimo_gateway.models.gateway_models import GatewayLog
from dizimo_gateway.utils.log_sanitizer import sanitize_log

logger = logging.getLogger(__name__)

OPERATION_TYPES = ("token", "pix", "boleto", "consulta")


@dataclass(frozen=True)
class AuditEntry:
    operation_type: str
    method: str
    endpoint: str
    payment_id: Optional[str] = None
    request_body: Any = None
    status_code: Optional[int] = None
    response_body: Any = None
    error_message: Optional[str] = None

    def __post_init__(self):
        if self.operation_type not in OPERATION_TYPES:
            raise ValueError(f"Tipo de operação de auditoria inválido: {self.operation_type}")

    def sanitized(self) -> "AuditEntry":
        """Retorna uma cópia com corpos e mensagem de erro redigidos."""
        return replace(
            self,
            request_body=_sanitize_body(self.request_body),
            response_body=_sanitize_body(self.response_body),
            error_message=sanitize_log(self.error_message),
        )


def _sanitize_body(body: Any) -> Any:
    if isinstance(body, str):
        # Corpos JSON em texto são redigidos estruturalmente
        try:
            return sanitize_log(json.loads(body))
        except ValueError:
            return sanitize_log(body)
    return sanitize_log(body)


def _serialize(body: Any) -> Optional[str]:
    if body is None:
        return None
    if isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False, default=str)


class AuditLogger(Protocol):
    async def log_request(self, entry: AuditEntry) -> None:
        ...

    async def log_response(self, entry: AuditEntry) -> None:
        ...


class NullAuditLogger:
    """Descarta os registros de auditoria."""

    async def log_request(self, entry: AuditEntry) -> None:
        return None

    async def log_response(self, entry: AuditEntry) -> None:
        return None


class DatabaseAuditLogger:
    """
    Grava os registros de auditoria na tabela gateway_logs.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def _insert(self, kind: str, entry: AuditEntry) -> None:
        try:
            async with self.session_maker() as session:
                session.add(GatewayLog(
                    operation_type=entry.operation_type,
                    type=kind,
                    method=entry.method,
                    endpoint=entry.endpoint,
                    payment_id=entry.payment_id,
                    request_body=_serialize(entry.request_body),
                    response_body=_serialize(entry.response_body),
                    status_code=entry.status_code,
                    error_message=entry.error_message,
                ))
                await session.commit()
        except Exception as e:
            logger.error("[GATEWAY_AUDIT] Erro ao gravar auditoria (%s): %s", kind, e)

    async def log_request(self, entry: AuditEntry) -> None:
        await self._insert("request", entry)

    async def log_response(self, entry: AuditEntry) -> None:
        await self._insert("response", entry)


async def audit_request(audit: AuditLogger, entry: AuditEntry) -> None:
    """Sanitiza e envia uma requisição ao destino de auditoria, sem propagar falhas."""
    try:
        await audit.log_request(entry.sanitized())
    except Exception as e:
        logger.error("[GATEWAY_AUDIT] Falha no destino de auditoria: %s", e)


async def audit_response(audit: AuditLogger, entry: AuditEntry) -> None:
    """Sanitiza e envia uma resposta ao destino de auditoria, sem propagar falhas."""
    try:
        await audit.log_response(entry.sanitized())
    except Exception as e:
        logger.error("[GATEWAY_AUDIT] Falha no destino de auditoria: %s", e)
