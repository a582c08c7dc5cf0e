# D:\DizimoGateway\dizimo_gateway\services\payment\types.py

"""
types.py

Tipos de dados trocados entre os componentes da integração bancária (PIX + Boleto).

Classes:
    Environment: Ambiente alvo do gateway.
    PixChargeStatus: Status de uma cobrança PIX (padrão BACEN).
    BoletoSettlementStatus: Status de um boleto registrado.
    PaymentOutcome: Status interno, independente de gateway.
    ProviderConfiguration: Configuração resolvida de um gateway.
    OAuthToken: Token OAuth2 em cache.
    PixChargeResult, PixSettlement, PixStatus: Resultados do serviço PIX.
    PayerAddress, BoletoPayer, BoletoRegistrationResult, BoletoStatus: Resultados do serviço Boleto.
"""

import enum
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


class Environment(str, enum.Enum):
    """Ambientes suportados pelo banco."""

    PRODUCTION = "production"
    STAGING = "development"
    SANDBOX = "sandbox"

    @classmethod
    def from_value(cls, value: str) -> "Environment":
        """
        Converte o valor armazenado no banco de dados em um Environment.

        Aceita os apelidos "staging" e "homologacao" para o ambiente de homologação.

        Raises:
            ValueError: Se o ambiente não for reconhecido.
        """
        normalized = (value or "").strip().lower()
        if normalized in ("staging", "homologacao", "homologação"):
            return cls.STAGING
        return cls(normalized)


class PixChargeStatus(str, enum.Enum):
    ACTIVE = "ATIVA"
    COMPLETED = "CONCLUIDA"
    REMOVED_BY_PAYEE = "REMOVIDA_PELO_USUARIO_RECEBEDOR"
    REMOVED_BY_PSP = "REMOVIDA_PELO_PSP"


class BoletoSettlementStatus(str, enum.Enum):
    REGISTERED = "registrado"
    PAID = "pago"
    OVERDUE = "vencido"
    CANCELLED = "cancelado"


class PaymentOutcome(str, enum.Enum):
    """Status persistido pela aplicação hospedeira."""

    APPROVED = "approved"
    PENDING = "pending"
    REFUSED = "refused"


@dataclass(frozen=True)
class ProviderConfiguration:
    """
    Configuração de um gateway, já validada e com as credenciais do ambiente escolhido.

    O certificado permanece codificado em base64 e só é decodificado pelo transporte mTLS.
    """

    provider_name: str
    environment: Environment
    client_id: str
    client_secret: str = field(repr=False)
    certificate: str = field(repr=False)
    certificate_password: str = field(repr=False)
    pix_key: str
    is_active: bool = True

    @property
    def is_sandbox(self) -> bool:
        return self.environment is Environment.SANDBOX


@dataclass(frozen=True)
class OAuthToken:
    access_token: str = field(repr=False)
    expires_at: float
    issued_at: float = 0.0

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Retorna True enquanto o token puder ser usado."""
        current = time.time() if now is None else now
        return current < self.expires_at


@dataclass(frozen=True)
class PixCharge:
    """Cobrança PIX imediata montada localmente antes do envio."""

    txid: str
    payer_document: str
    payer_name: str
    amount: str
    pix_key: str
    expiration_seconds: int
    payer_request: str = ""

    def to_payload(self) -> dict:
        """Monta o corpo BACEN do PUT /v2/cob/{txid}."""
        payload = {
            "calendario": {"expiracao": self.expiration_seconds},
            "devedor": {"cpf": self.payer_document, "nome": self.payer_name},
            "valor": {"original": self.amount},
            "chave": self.pix_key,
        }
        if self.payer_request:
            payload["solicitacaoPagador"] = self.payer_request
        return payload


@dataclass(frozen=True)
class PixChargeResult:
    txid: str
    status: PixChargeStatus
    location_url: str
    copy_paste_code: str
    qr_image: str


@dataclass(frozen=True)
class PixSettlement:
    end_to_end_id: str
    amount: str
    paid_at: str


@dataclass(frozen=True)
class PixStatus:
    """
    Resultado da consulta de uma cobrança PIX.

    Quando `degraded` é True a consulta falhou e o status ACTIVE é sintético.
    """

    txid: str
    status: PixChargeStatus
    original_amount: str = "0.00"
    settlements: List[PixSettlement] = field(default_factory=list)
    degraded: bool = False
    degraded_reason: Optional[str] = None


@dataclass(frozen=True)
class PayerAddress:
    street: str
    city: str
    state: str
    zip: str
    district: str


@dataclass(frozen=True)
class BoletoPayer:
    name: str
    document: str
    address: PayerAddress


@dataclass(frozen=True)
class BoletoRegistration:
    nosso_numero: str
    amount_in_cents: int
    due_date: date
    payer: BoletoPayer

    def to_payload(self) -> dict:
        """Monta o corpo do POST /v1/boleto/registrar."""
        return {
            "nossoNumero": self.nosso_numero,
            "valorNominal": self.amount_in_cents,
            "dataVencimento": self.due_date.isoformat(),
            "pagador": {
                "nome": self.payer.name,
                "cpf": self.payer.document,
                "endereco": self.payer.address.street,
                "cidade": self.payer.address.city,
                "uf": self.payer.address.state,
                "cep": self.payer.address.zip,
                "bairro": self.payer.address.district,
            },
        }


@dataclass(frozen=True)
class BoletoRegistrationResult:
    nosso_numero: str
    digitable_line: str
    barcode: str
    url: str


@dataclass(frozen=True)
class BoletoStatus:
    """
    Resultado da consulta de um boleto.

    Quando `degraded` é True a consulta falhou e o status REGISTERED é sintético.
    """

    nosso_numero: str
    status: BoletoSettlementStatus
    paid_amount: Optional[Decimal] = None
    paid_at: Optional[str] = None
    degraded: bool = False
    degraded_reason: Optional[str] = None
