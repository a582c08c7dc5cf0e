# D:\DizimoGateway\dizimo_gateway\services\payment\environments.py

"""
environments.py

Mapeamento dos ambientes do Bradesco para as URLs base de cada serviço.

Open APIs (Cobrança, Boleto):
    - Sandbox:     https://openapisandbox.prebanco.com.br
    - Homologação: https://proxy.api.prebanco.com.br
    - Produção:    https://openapi.bradesco.com.br

APIs PIX:
    - Sandbox:     https://openapisandbox.prebanco.com.br (mesma base das Open APIs)
    - Homologação: https://qrpix-h.bradesco.com.br
    - Produção:    https://qrpix.bradesco.com.br
"""

from dataclasses import dataclass
from typing import Dict, Union

from .types import Environment


@dataclass(frozen=True)
class EnvironmentUrls:
    auth: str
    api: str
    pix: str


BRADESCO_URLS: Dict[Environment, EnvironmentUrls] = {
    Environment.PRODUCTION: EnvironmentUrls(
        auth="https://qrpix.bradesco.com.br/auth/server/oauth/token",
        api="https://openapi.bradesco.com.br",
        pix="https://qrpix.bradesco.com.br",
    ),
    Environment.STAGING: EnvironmentUrls(
        auth="https://proxy.api.prebanco.com.br/auth/server/oauth/token",
        api="https://proxy.api.prebanco.com.br",
        pix="https://qrpix-h.bradesco.com.br",
    ),
    Environment.SANDBOX: EnvironmentUrls(
        auth="https://openapisandbox.prebanco.com.br/auth/server/oauth/token",
        api="https://openapisandbox.prebanco.com.br",
        pix="https://openapisandbox.prebanco.com.br",
    ),
}


def resolve_urls(environment: Union[Environment, str]) -> EnvironmentUrls:
    """
    Retorna as três URLs base (autenticação, API geral e PIX) do ambiente informado.

    Args:
        environment (Environment | str): Ambiente declarado na configuração.

    Returns:
        EnvironmentUrls: URLs do ambiente.

    Raises:
        ValueError: Se o ambiente não for reconhecido.
    """
    if not isinstance(environment, Environment):
        environment = Environment.from_value(environment)
    return BRADESCO_URLS[environment]


def get_auth_url(environment: Union[Environment, str]) -> str:
    return resolve_urls(environment).auth


def get_api_url(environment: Union[Environment, str]) -> str:
    return resolve_urls(environment).api


def get_pix_url(environment: Union[Environment, str]) -> str:
    return resolve_urls(environment).pix
