# D:\DizimoGateway\dizimo_gateway\services\payment\boleto_service.py

"""
boleto_service.py

Serviço de boleto registrado do banco.

Operações:
    register_boleto: POST {api}/v1/boleto/registrar com nosso número gerado localmente,
        valor em centavos e vencimento em 7 dias corridos.
    query_boleto: GET {api}/v1/boleto/consultar/{nossoNumero}. Assim como a consulta PIX,
        falhas resultam em um status "registrado" sintético marcado como `degraded`.

Classes:
    BoletoService: Implementação das operações acima.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from dizimo_gateway.utils.log_sanitizer import safe_log

from .audit_logger import AuditEntry, audit_request, audit_response
from .base_service import BankServiceBase, parse_provider_error
from .environments import get_api_url
from .errors import ConfigurationError, GatewayError, ProviderRejectedError
from .identifiers import amount_to_cents, boleto_due_date, generate_nosso_numero, strip_non_digits
from .types import (
    BoletoPayer,
    BoletoRegistration,
    BoletoRegistrationResult,
    BoletoSettlementStatus,
    BoletoStatus,
    PayerAddress,
)

logger = logging.getLogger(__name__)


def parse_boleto_status(value: Optional[str]) -> BoletoSettlementStatus:
    """Converte o status informado pelo banco; valores desconhecidos contam como registrado."""
    if not value:
        return BoletoSettlementStatus.REGISTERED
    try:
        return BoletoSettlementStatus(str(value).lower())
    except ValueError:
        logger.warning("[GATEWAY_BOLETO] Status de boleto desconhecido: %s", value)
        return BoletoSettlementStatus.REGISTERED


def _parse_paid_amount(value) -> Optional[Decimal]:
    # O banco informa valorPago em centavos
    if value is None or value == "":
        return None
    try:
        return (Decimal(str(value)) / 100).quantize(Decimal("0.01"))
    except InvalidOperation:
        logger.warning("[GATEWAY_BOLETO] valorPago inválido: %r", value)
        return None


class BoletoService(BankServiceBase):
    """
    Registro e consulta de boletos.
    """

    async def register_boleto(self, amount, payer: BoletoPayer) -> BoletoRegistrationResult:
        """
        Registra um boleto no banco.

        Args:
            amount (Decimal | float | int | str): Valor em reais (enviado em centavos).
            payer (BoletoPayer): Nome, documento e endereço do pagador.

        Returns:
            BoletoRegistrationResult: Nosso número, linha digitável, código de barras e URL.

        Raises:
            ValueError: Se o valor for inválido.
            ConfigurationError: Se o gateway não estiver configurado corretamente.
            AuthenticationFailedError: Se a autenticação falhar.
            GatewayTimeoutError: Se o banco não responder a tempo.
            TransportFailureError: Se houver falha de rede.
            ProviderRejectedError: Se o banco recusar o registro.
        """
        amount_in_cents = amount_to_cents(amount)
        context = await self._context()
        nosso_numero = generate_nosso_numero()
        endpoint = f"{get_api_url(context.configuration.environment)}/v1/boleto/registrar"

        registration = BoletoRegistration(
            nosso_numero=nosso_numero,
            amount_in_cents=amount_in_cents,
            due_date=boleto_due_date(),
            payer=BoletoPayer(
                name=payer.name,
                document=strip_non_digits(payer.document),
                address=PayerAddress(
                    street=payer.address.street,
                    city=payer.address.city,
                    state=payer.address.state,
                    zip=strip_non_digits(payer.address.zip),
                    district=payer.address.district,
                ),
            ),
        )
        payload = registration.to_payload()

        safe_log(logger, logging.INFO, "[GATEWAY_BOLETO_REQUEST]", {
            "endpoint": endpoint,
            "environment": context.configuration.environment.value,
            "amount": amount_in_cents,
            "nossoNumero": nosso_numero,
        })
        await audit_request(self.audit, AuditEntry(
            operation_type="boleto",
            method="POST",
            endpoint=endpoint,
            payment_id=nosso_numero,
            request_body=payload,
        ))

        response = await self.executor.execute(
            context.session, "POST", endpoint,
            headers=self._headers(context.token, json_body=True),
            json_body=payload,
        )

        await audit_response(self.audit, AuditEntry(
            operation_type="boleto",
            method="POST",
            endpoint=endpoint,
            payment_id=nosso_numero,
            status_code=response.status,
            response_body=response.text,
            error_message=None if response.ok else response.text,
        ))

        if not response.ok:
            raise parse_provider_error(response, "registrar boleto")

        try:
            data = response.json()
        except ValueError:
            raise ProviderRejectedError(
                "Resposta inválida do banco ao registrar boleto. Tente novamente.",
                status_code=response.status,
            )
        if not isinstance(data, dict):
            data = {}

        result = BoletoRegistrationResult(
            nosso_numero=data.get("nossoNumero") or nosso_numero,
            digitable_line=data.get("linhaDigitavel") or "",
            barcode=data.get("codigoBarras") or "",
            url=data.get("url") or "",
        )
        safe_log(logger, logging.INFO, "[GATEWAY_BOLETO_RESPONSE]", {
            "nossoNumero": result.nosso_numero,
            "has_linha_digitavel": bool(result.digitable_line),
            "has_codigo_barras": bool(result.barcode),
            "has_url": bool(result.url),
        })
        return result

    async def query_boleto(self, nosso_numero: str) -> BoletoStatus:
        """
        Consulta o status de um boleto.

        Falhas de autenticação, rede, tempo limite ou respostas não-2xx resultam em um
        status "registrado" sintético com `degraded=True`. Erros de configuração são propagados.

        Args:
            nosso_numero (str): Número de controle do boleto.

        Returns:
            BoletoStatus: Status atual e, se pago, valor e data do pagamento.

        Raises:
            ConfigurationError: Se o gateway não estiver configurado corretamente.
        """
        try:
            context = await self._context()
        except ConfigurationError:
            raise
        except GatewayError as e:
            return self._degraded(nosso_numero, type(e).__name__)

        endpoint = f"{get_api_url(context.configuration.environment)}/v1/boleto/consultar/{nosso_numero}"
        safe_log(logger, logging.INFO, "[GATEWAY_BOLETO_QUERY_REQUEST]", {
            "endpoint": endpoint,
            "environment": context.configuration.environment.value,
            "nossoNumero": nosso_numero,
        })
        await audit_request(self.audit, AuditEntry(
            operation_type="consulta",
            method="GET",
            endpoint=endpoint,
            payment_id=nosso_numero,
        ))

        try:
            response = await self.executor.execute(
                context.session, "GET", endpoint, headers=self._headers(context.token),
            )
        except GatewayError as e:
            return self._degraded(nosso_numero, type(e).__name__)

        await audit_response(self.audit, AuditEntry(
            operation_type="consulta",
            method="GET",
            endpoint=endpoint,
            payment_id=nosso_numero,
            status_code=response.status,
            response_body=response.text,
            error_message=None if response.ok else response.text,
        ))

        if not response.ok:
            return self._degraded(nosso_numero, f"HTTP {response.status}")

        data = self._json_or_empty(response)
        if not data:
            return self._degraded(nosso_numero, "invalid_json")

        status = BoletoStatus(
            nosso_numero=data.get("nossoNumero") or nosso_numero,
            status=parse_boleto_status(data.get("status")),
            paid_amount=_parse_paid_amount(data.get("valorPago")),
            paid_at=data.get("dataPagamento"),
        )
        safe_log(logger, logging.INFO, "[GATEWAY_BOLETO_QUERY_SUCCESS]", {
            "nossoNumero": status.nosso_numero,
            "status": status.status.value,
            "has_valor_pago": status.paid_amount is not None,
        })
        return status

    @staticmethod
    def _degraded(nosso_numero: str, reason: str) -> BoletoStatus:
        logger.warning("[GATEWAY_BOLETO_QUERY_DEGRADED] nossoNumero=%s motivo=%s", nosso_numero, reason)
        return BoletoStatus(
            nosso_numero=nosso_numero,
            status=BoletoSettlementStatus.REGISTERED,
            degraded=True,
            degraded_reason=reason,
        )
