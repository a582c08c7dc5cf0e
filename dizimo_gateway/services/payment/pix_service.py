# D:\DizimoGateway\dizimo_gateway\services\payment\pix_service.py

"""
pix_service.py

Serviço de cobrança PIX imediata (API PIX padrão BACEN).

Operações:
    create_charge: PUT {pix}/v2/cob/{txid} com txid gerado localmente.
    query_charge: GET {pix}/v2/cob/{txid}. Nunca levanta erro de comunicação:
        em caso de falha devolve um status ATIVA sintético marcado como `degraded`,
        para que rotinas de polling não sejam interrompidas.

Classes:
    PixService: Implementação das operações acima.
"""

import logging
from typing import List, Optional

from dizimo_gateway.config.settings import PIX_EXPIRATION_SECONDS, PIX_PAYER_REQUEST
from dizimo_gateway.utils.log_sanitizer import safe_log

from .audit_logger import AuditEntry, audit_request, audit_response
from .base_service import BankContext, BankServiceBase, parse_provider_error
from .environments import get_pix_url
from .errors import ConfigurationError, GatewayError, ProviderRejectedError
from .identifiers import format_pix_amount, generate_txid, strip_non_digits
from .request_executor import BankResponse
from .types import (
    PixCharge,
    PixChargeResult,
    PixChargeStatus,
    PixSettlement,
    PixStatus,
)

logger = logging.getLogger(__name__)

# Texto puro devolvido pela location só é aceito como BRCode dentro destes limites
_MIN_PLAIN_BRCODE = 20
_MAX_PLAIN_BRCODE = 500


def parse_pix_status(value: Optional[str]) -> PixChargeStatus:
    """Converte o status informado pelo banco; valores desconhecidos contam como ATIVA."""
    if not value:
        return PixChargeStatus.ACTIVE
    try:
        return PixChargeStatus(value)
    except ValueError:
        logger.warning("[GATEWAY_PIX] Status PIX desconhecido: %s", value)
        return PixChargeStatus.ACTIVE


def _with_scheme(location: str) -> str:
    # O padrão BACEN devolve a location sem esquema (ex.: "pix.banco.com.br/qr/v2/...")
    if location.startswith(("http://", "https://")):
        return location
    return f"https://{location}"


class PixService(BankServiceBase):
    """
    Criação e consulta de cobranças PIX imediatas.
    """

    async def create_charge(
        self,
        amount,
        pix_key: Optional[str],
        payer_name: str,
        payer_document: str,
    ) -> PixChargeResult:
        """
        Cria uma cobrança PIX imediata.

        Args:
            amount (Decimal | float | int | str): Valor em reais.
            pix_key (str, optional): Chave PIX do recebedor. Se vazia, usa a da configuração.
            payer_name (str): Nome do devedor.
            payer_document (str): CPF do devedor (formatado ou apenas dígitos).

        Returns:
            PixChargeResult: txid, status, location, copia-e-cola e imagem do QR Code.

        Raises:
            ValueError: Se o valor for inválido.
            ConfigurationError: Se o gateway não estiver configurado corretamente.
            AuthenticationFailedError: Se a autenticação falhar.
            GatewayTimeoutError: Se o banco não responder a tempo.
            TransportFailureError: Se houver falha de rede.
            ProviderRejectedError: Se o banco recusar a cobrança.
        """
        formatted_amount = format_pix_amount(amount)
        context = await self._context()
        txid = generate_txid()
        endpoint = f"{get_pix_url(context.configuration.environment)}/v2/cob/{txid}"

        charge = PixCharge(
            txid=txid,
            payer_document=strip_non_digits(payer_document),
            payer_name=payer_name,
            amount=formatted_amount,
            pix_key=pix_key or context.configuration.pix_key,
            expiration_seconds=PIX_EXPIRATION_SECONDS,
            payer_request=PIX_PAYER_REQUEST,
        )
        payload = charge.to_payload()

        safe_log(logger, logging.INFO, "[GATEWAY_PIX_REQUEST]", {
            "endpoint": endpoint,
            "environment": context.configuration.environment.value,
            "amount": formatted_amount,
            "txid": txid,
        })
        await audit_request(self.audit, AuditEntry(
            operation_type="pix",
            method="PUT",
            endpoint=endpoint,
            payment_id=txid,
            request_body=payload,
        ))

        response = await self.executor.execute(
            context.session, "PUT", endpoint,
            headers=self._headers(context.token, json_body=True),
            json_body=payload,
        )

        await audit_response(self.audit, AuditEntry(
            operation_type="pix",
            method="PUT",
            endpoint=endpoint,
            payment_id=txid,
            status_code=response.status,
            response_body=response.text,
            error_message=None if response.ok else response.text,
        ))

        if not response.ok:
            raise parse_provider_error(response, "criar cobrança PIX")

        try:
            data = response.json()
        except ValueError:
            raise ProviderRejectedError(
                "Resposta inválida do banco ao criar cobrança PIX. Tente novamente.",
                status_code=response.status,
            )
        if not isinstance(data, dict):
            data = {}

        location = data.get("location") or ""
        copy_paste_code = data.get("pixCopiaECola") or ""
        qr_image = data.get("qrcode") or data.get("imagemQrcode") or ""

        safe_log(logger, logging.INFO, "[GATEWAY_PIX_RESPONSE]", {
            "txid": data.get("txid") or txid,
            "status": data.get("status"),
            "has_location": bool(location),
        })

        if location and not copy_paste_code:
            fetched_code, fetched_image = await self._fetch_location(location, context)
            copy_paste_code = fetched_code
            qr_image = qr_image or fetched_image

        if not copy_paste_code and location:
            copy_paste_code = location

        return PixChargeResult(
            txid=data.get("txid") or txid,
            status=parse_pix_status(data.get("status")),
            location_url=location,
            copy_paste_code=copy_paste_code,
            qr_image=qr_image,
        )

    async def _fetch_location(self, location: str, context: BankContext):
        """
        Busca o payload do QR Code na location da cobrança.

        Aceita resposta JSON (pixCopiaECola, emv ou qrcode) ou o próprio BRCode em texto puro.
        Falhas aqui não interrompem a criação da cobrança.

        Returns:
            Tuple[str, str]: Copia-e-cola e imagem do QR Code (vazios se indisponíveis).
        """
        url = _with_scheme(location)
        try:
            response = await self.executor.execute(
                context.session, "GET", url,
                headers=self._headers(context.token, accept="application/json"),
            )
        except GatewayError as e:
            safe_log(logger, logging.ERROR, "[GATEWAY_PIX_QR_ERROR] Erro ao buscar QR Code via location", {
                "location": location,
                "error": type(e).__name__,
            })
            return "", ""

        if not response.ok:
            safe_log(logger, logging.ERROR, "[GATEWAY_PIX_QR_FETCH_FAILED] Falha ao buscar QR Code via location", {
                "location": location,
                "status": response.status,
            })
            return "", ""

        try:
            data = response.json()
        except ValueError:
            text = response.text.strip()
            safe_log(logger, logging.WARNING, "[GATEWAY_PIX_QR_PARSE] Resposta da location não é JSON", {
                "location": location,
                "length": len(text),
            })
            if _MIN_PLAIN_BRCODE < len(text) < _MAX_PLAIN_BRCODE:
                return text, ""
            return "", ""

        if not isinstance(data, dict):
            return "", ""
        code = data.get("pixCopiaECola") or data.get("emv") or data.get("qrcode") or ""
        return code, data.get("imagemQrcode") or ""

    async def query_charge(self, txid: str) -> PixStatus:
        """
        Consulta o status de uma cobrança PIX.

        Falhas de autenticação, rede, tempo limite ou respostas não-2xx resultam em um
        status ATIVA sintético com `degraded=True`. Erros de configuração são propagados.

        Args:
            txid (str): Identificador da cobrança.

        Returns:
            PixStatus: Status atual e liquidações (se concluída).

        Raises:
            ConfigurationError: Se o gateway não estiver configurado corretamente.
        """
        try:
            context = await self._context()
        except ConfigurationError:
            raise
        except GatewayError as e:
            return self._degraded(txid, type(e).__name__)

        endpoint = f"{get_pix_url(context.configuration.environment)}/v2/cob/{txid}"
        safe_log(logger, logging.INFO, "[GATEWAY_PIX_QUERY_REQUEST]", {
            "endpoint": endpoint,
            "environment": context.configuration.environment.value,
            "txid": txid,
        })
        await audit_request(self.audit, AuditEntry(
            operation_type="consulta",
            method="GET",
            endpoint=endpoint,
            payment_id=txid,
        ))

        try:
            response = await self.executor.execute(
                context.session, "GET", endpoint, headers=self._headers(context.token),
            )
        except GatewayError as e:
            return self._degraded(txid, type(e).__name__)

        await audit_response(self.audit, AuditEntry(
            operation_type="consulta",
            method="GET",
            endpoint=endpoint,
            payment_id=txid,
            status_code=response.status,
            response_body=response.text,
            error_message=None if response.ok else response.text,
        ))

        if not response.ok:
            return self._degraded(txid, f"HTTP {response.status}")

        return self._parse_status(txid, response)

    def _parse_status(self, txid: str, response: BankResponse) -> PixStatus:
        try:
            data = response.json()
        except ValueError:
            return self._degraded(txid, "invalid_json")
        if not isinstance(data, dict):
            return self._degraded(txid, "invalid_json")

        pix = data.get("pix") or []
        valor = data.get("valor") or {}
        if not isinstance(pix, list) or not isinstance(valor, dict):
            return self._degraded(txid, "invalid_payload")

        settlements: List[PixSettlement] = [
            PixSettlement(
                end_to_end_id=str(item.get("endToEndId", "")),
                amount=str(item.get("valor", "")),
                paid_at=str(item.get("horario", "")),
            )
            for item in pix
            if isinstance(item, dict)
        ]

        try:
            status = PixStatus(
                txid=str(data.get("txid") or txid),
                status=parse_pix_status(data.get("status")),
                original_amount=str(valor.get("original") or "0.00"),
                settlements=settlements,
            )
        except TypeError:
            return self._degraded(txid, "invalid_payload")
        safe_log(logger, logging.INFO, "[GATEWAY_PIX_QUERY_SUCCESS]", {
            "txid": status.txid,
            "status": status.status.value,
            "has_pix": bool(settlements),
        })
        return status

    @staticmethod
    def _degraded(txid: str, reason: str) -> PixStatus:
        logger.warning("[GATEWAY_PIX_QUERY_DEGRADED] txid=%s motivo=%s", txid, reason)
        return PixStatus(
            txid=txid,
            status=PixChargeStatus.ACTIVE,
            original_amount="0.00",
            degraded=True,
            degraded_reason=reason,
        )
