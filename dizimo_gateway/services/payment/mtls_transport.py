# D:\DizimoGateway\dizimo_gateway\services\payment\mtls_transport.py

"""
mtls_transport.py

Transporte HTTPS com TLS mútuo (certificado digital do cliente) exigido pelo banco.

O certificado chega em base64 (.pfx/PKCS#12 ou PEM). Ele é decodificado apenas aqui,
convertido em um ssl.SSLContext e descartado da memória em seguida; a chave privada
só toca o disco em um arquivo temporário cifrado com a própria senha do certificado,
removido logo após a carga.

Uma sessão aiohttp é mantida por (gateway, ambiente, certificado), evitando o custo de
decodificar o certificado a cada requisição.

Classes:
    MtlsTransportFactory: Constrói e reutiliza sessões aiohttp com certificado de cliente.
"""

import asyncio
import hashlib
import logging
import os
import ssl
import tempfile
from base64 import b64decode
from binascii import Error as BinasciiError
from typing import Dict, Optional, Tuple

import aiohttp
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography import x509

from .errors import AuthenticationFailedError
from .types import ProviderConfiguration

logger = logging.getLogger(__name__)

_PEM_MARKER = b"-----BEGIN"


def _load_key_and_certificates(certificate_b64: str, password: str):
    try:
        raw = b64decode(certificate_b64, validate=False)
    except (BinasciiError, ValueError):
        raise AuthenticationFailedError(
            "Certificado digital inválido. Envie novamente o arquivo .pfx.",
            {"reason": "base64"},
        )

    passphrase = password.encode("utf-8") if password else None
    try:
        if raw.lstrip().startswith(_PEM_MARKER):
            key = serialization.load_pem_private_key(raw, password=passphrase)
            chain = x509.load_pem_x509_certificates(raw)
            return key, chain[0], chain[1:]
        key, certificate, additional = pkcs12.load_key_and_certificates(raw, passphrase)
    except (ValueError, TypeError) as e:
        raise AuthenticationFailedError(
            "Não foi possível abrir o certificado digital. Verifique o arquivo e a senha.",
            {"reason": type(e).__name__},
        )
    finally:
        del raw

    if key is None or certificate is None:
        raise AuthenticationFailedError(
            "O certificado digital não contém chave privada.",
            {"reason": "missing_key"},
        )
    return key, certificate, list(additional or [])


def build_ssl_context(certificate_b64: str, password: str) -> ssl.SSLContext:
    """
    Cria um SSLContext cliente carregado com o certificado digital informado.

    Args:
        certificate_b64 (str): Certificado .pfx (ou PEM) codificado em base64.
        password (str): Senha do certificado.

    Returns:
        ssl.SSLContext: Contexto pronto para conexões com autenticação de cliente.

    Raises:
        AuthenticationFailedError: Se o certificado ou a senha forem inválidos.
    """
    key, certificate, chain = _load_key_and_certificates(certificate_b64, password)
    passphrase = (password or "").encode("utf-8")

    encryption = (
        serialization.BestAvailableEncryption(passphrase)
        if passphrase else serialization.NoEncryption()
    )
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )
    cert_pem = b"".join(
        c.public_bytes(serialization.Encoding.PEM) for c in [certificate, *chain]
    )

    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    with tempfile.TemporaryDirectory(prefix="mtls-") as tmp_dir:
        cert_path = os.path.join(tmp_dir, "client.crt")
        key_path = os.path.join(tmp_dir, "client.key")
        with open(cert_path, "wb") as fp:
            fp.write(cert_pem)
        with open(os.open(key_path, os.O_WRONLY | os.O_CREAT, 0o600), "wb") as fp:
            fp.write(key_pem)
        try:
            context.load_cert_chain(cert_path, key_path, password=passphrase or None)
        except ssl.SSLError as e:
            raise AuthenticationFailedError(
                "Não foi possível carregar o certificado digital.",
                {"reason": e.reason or "ssl"},
            )
    return context


def certificate_fingerprint(certificate_b64: str) -> str:
    """Impressão digital (sha256) do certificado em base64, usada como chave de cache."""
    return hashlib.sha256(certificate_b64.encode("utf-8")).hexdigest()


class MtlsTransportFactory:
    """
    Fornece sessões aiohttp configuradas com o certificado do cliente.

    Reaproveita a mesma sessão para o mesmo gateway/ambiente/certificado. Se o
    certificado mudar (nova configuração), uma nova sessão é criada e a anterior fechada.
    """

    def __init__(self):
        self._sessions: Dict[Tuple[str, str], Tuple[str, aiohttp.ClientSession]] = {}
        self._lock = asyncio.Lock()

    def create_session(self, ssl_context: Optional[ssl.SSLContext]) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(ssl=ssl_context if ssl_context is not None else True)
        return aiohttp.ClientSession(connector=connector)

    async def get_session(self, configuration: ProviderConfiguration) -> aiohttp.ClientSession:
        """
        Retorna a sessão mTLS do gateway/ambiente da configuração.

        Args:
            configuration (ProviderConfiguration): Configuração com certificado e senha.

        Returns:
            aiohttp.ClientSession: Sessão reutilizável.

        Raises:
            AuthenticationFailedError: Se o certificado não puder ser carregado.
        """
        key = (configuration.provider_name.lower(), configuration.environment.value)
        fingerprint = certificate_fingerprint(configuration.certificate)

        async with self._lock:
            cached = self._sessions.get(key)
            if cached is not None:
                cached_fingerprint, session = cached
                if cached_fingerprint == fingerprint and not session.closed:
                    return session
                if not session.closed:
                    await session.close()

            # Leitura do PKCS#12 e escrita da chave temporária ficam fora do loop de eventos
            ssl_context = await asyncio.to_thread(
                build_ssl_context, configuration.certificate, configuration.certificate_password,
            )
            session = self.create_session(ssl_context)
            self._sessions[key] = (fingerprint, session)
            logger.info(
                "[GATEWAY_MTLS] Transporte mTLS criado para %s (%s)",
                configuration.provider_name, configuration.environment.value,
            )
            return session

    async def close(self) -> None:
        """Fecha todas as sessões abertas."""
        async with self._lock:
            for _, session in self._sessions.values():
                if not session.closed:
                    await session.close()
            self._sessions.clear()
