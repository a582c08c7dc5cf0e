# D:\DizimoGateway\dizimo_gateway\models\gateway_models.py
"""
gateway_models.py

Módulo que define os modelos de dados (ORM) da integração com gateways bancários,
usando SQLAlchemy.

Funcionalidades principais:
    - Armazenamento das credenciais e do certificado digital de cada gateway
    - Registro de auditoria de toda requisição/resposta trocada com o banco

Regras de Negócio:
    - Cada empresa possui no máximo uma configuração por gateway
    - Apenas um gateway deve estar ativo por empresa (garantido pela aplicação hospedeira)
    - Credenciais de produção e de homologação/sandbox são armazenadas separadamente
    - Corpos gravados na auditoria já chegam redigidos (sem segredos)

Dependências:
    - SQLAlchemy para ORM
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, UniqueConstraint

from dizimo_gateway.config.settings import get_current_time
from dizimo_gateway.models.database import Base


class GatewayConfiguration(Base):
    """
    Representa a configuração de um gateway de pagamento de uma empresa.

    Attributes:
        id (int): ID único da configuração.
        company_id (str): Identificador da empresa (tenant).
        gateway_name (str): Nome do gateway (Bradesco, Cielo, etc).
        is_active (bool): Se o gateway está ativo para a empresa.
        environment (str): Ambiente alvo ('production', 'development', 'sandbox').
        prod_client_id (str): Client ID de produção.
        prod_client_secret (str): Client secret de produção.
        dev_client_id (str): Client ID de homologação/sandbox.
        dev_client_secret (str): Client secret de homologação/sandbox.
        certificate (str): Certificado digital (.pfx) codificado em base64.
        certificate_password (str): Senha do certificado digital.
        pix_key (str): Chave PIX do recebedor.
        created_at (datetime): Data de criação do registro.
        updated_at (datetime): Data da última atualização.
    """
    __tablename__ = 'gateway_configurations'
    __table_args__ = (
        UniqueConstraint('company_id', 'gateway_name', name='uq_gateway_company_name'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(String(64), nullable=False, index=True)
    gateway_name = Column(String(50), nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    environment = Column(String(20), default='development', nullable=False)
    prod_client_id = Column(Text, nullable=True)
    prod_client_secret = Column(Text, nullable=True)
    dev_client_id = Column(Text, nullable=True)
    dev_client_secret = Column(Text, nullable=True)
    certificate = Column(Text, nullable=True)
    certificate_password = Column(Text, nullable=True)
    pix_key = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=get_current_time)
    updated_at = Column(DateTime, default=get_current_time, onupdate=get_current_time)


class GatewayLog(Base):
    """
    Registro de auditoria de uma requisição ou resposta trocada com o gateway.

    Attributes:
        id (int): ID único do registro.
        operation_type (str): Tipo da operação ('token', 'pix', 'boleto', 'consulta').
        type (str): 'request' ou 'response'.
        method (str): Método HTTP utilizado.
        endpoint (str): URL chamada.
        payment_id (str): txid ou nosso número associado, quando houver.
        request_body (str): Corpo da requisição em JSON (redigido).
        response_body (str): Corpo da resposta (redigido).
        status_code (int): Código HTTP retornado.
        error_message (str): Mensagem de erro, quando houver.
        created_at (datetime): Data do registro.
    """
    __tablename__ = 'gateway_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation_type = Column(String(20), nullable=False)
    type = Column(String(10), nullable=False)
    method = Column(String(10), nullable=False)
    endpoint = Column(Text, nullable=False)
    payment_id = Column(String(64), nullable=True, index=True)
    request_body = Column(Text, nullable=True)
    response_body = Column(Text, nullable=True)
    status_code = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=get_current_time)
