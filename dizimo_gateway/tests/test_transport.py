# D:\DizimoGateway\dizimo_gateway\tests\test_transport.py

"""
test_transport.py

Módulo de testes para o transporte mTLS e para o executor de requisições.

Testes:
    - Carga de certificados PKCS#12 e PEM
    - Certificado ou senha inválidos
    - Reaproveitamento e recriação das sessões
    - Timeout e falha de rede normalizados
"""

import asyncio
import ssl
import threading
from base64 import b64decode, b64encode
from unittest.mock import patch

import aiohttp
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from dizimo_gateway.services.payment.config_store import build_provider_configuration
from dizimo_gateway.services.payment.errors import (
    AuthenticationFailedError,
    GatewayTimeoutError,
    TransportFailureError,
)
from dizimo_gateway.services.payment.mtls_transport import (
    MtlsTransportFactory,
    build_ssl_context,
    certificate_fingerprint,
)
from dizimo_gateway.services.payment.request_executor import BankResponse, RequestExecutor
from dizimo_gateway.tests.utils.bank_utils import (
    CERTIFICATE_PASSWORD,
    make_certificate,
    make_configuration_row,
)


def test_build_ssl_context_from_pkcs12():
    context = build_ssl_context(make_certificate(), CERTIFICATE_PASSWORD)
    assert isinstance(context, ssl.SSLContext)


def test_build_ssl_context_from_pem():
    """
    Certificado em PEM (chave + certificado) também é aceito.
    """
    pfx = b64decode(make_certificate())
    key, certificate, _ = pkcs12.load_key_and_certificates(pfx, CERTIFICATE_PASSWORD.encode("utf-8"))
    pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.BestAvailableEncryption(CERTIFICATE_PASSWORD.encode("utf-8")),
    ) + certificate.public_bytes(serialization.Encoding.PEM)

    context = build_ssl_context(b64encode(pem).decode("ascii"), CERTIFICATE_PASSWORD)
    assert isinstance(context, ssl.SSLContext)


def test_wrong_certificate_password():
    with pytest.raises(AuthenticationFailedError):
        build_ssl_context(make_certificate(), "senha-errada")


def test_invalid_certificate():
    with pytest.raises(AuthenticationFailedError):
        build_ssl_context(b64encode(b"nao e um certificado").decode("ascii"), CERTIFICATE_PASSWORD)


def test_certificate_fingerprint_is_stable():
    certificate = make_certificate()

    assert certificate_fingerprint(certificate) == certificate_fingerprint(certificate)
    assert certificate_fingerprint(certificate) != certificate_fingerprint(make_certificate())


@pytest.mark.asyncio
async def test_sessions_are_reused_until_certificate_changes():
    factory = MtlsTransportFactory()
    configuration = build_provider_configuration("Bradesco", make_configuration_row())
    try:
        first = await factory.get_session(configuration)
        second = await factory.get_session(configuration)
        assert first is second

        renewed = build_provider_configuration("Bradesco", make_configuration_row())
        third = await factory.get_session(renewed)

        assert third is not first
        assert first.closed
    finally:
        await factory.close()

    assert third.closed


@pytest.mark.asyncio
async def test_ssl_context_is_built_off_the_event_loop():
    """
    A carga do certificado roda em outra thread, sem bloquear o loop de eventos.
    """
    threads = []

    def recording_build(certificate, password):
        threads.append(threading.get_ident())
        return build_ssl_context(certificate, password)

    factory = MtlsTransportFactory()
    configuration = build_provider_configuration("Bradesco", make_configuration_row())
    try:
        with patch("dizimo_gateway.services.payment.mtls_transport.build_ssl_context", recording_build):
            await factory.get_session(configuration)
    finally:
        await factory.close()

    assert len(threads) == 1
    assert threads[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_close_is_idempotent():
    factory = MtlsTransportFactory()
    session = await factory.get_session(build_provider_configuration("Bradesco", make_configuration_row()))

    await factory.close()
    await factory.close()

    assert session.closed


def test_factory_created_outside_event_loop():
    """
    A factory pode ser criada fora do loop e usada depois, com chamadas concorrentes.
    """
    factory = MtlsTransportFactory()
    configuration = build_provider_configuration("Bradesco", make_configuration_row())

    async def concurrent_sessions():
        try:
            return await asyncio.gather(*[factory.get_session(configuration) for _ in range(5)])
        finally:
            await factory.close()

    sessions = asyncio.run(concurrent_sessions())

    assert all(s is sessions[0] for s in sessions)
    assert sessions[0].closed


@pytest.mark.asyncio
async def test_invalid_certificate_fails_session():
    factory = MtlsTransportFactory()
    configuration = build_provider_configuration(
        "Bradesco", make_configuration_row(certificate=b64encode(b"lixo").decode("ascii")),
    )
    try:
        with pytest.raises(AuthenticationFailedError):
            await factory.get_session(configuration)
    finally:
        await factory.close()


def test_bank_response():
    response = BankResponse(status=201, text='{"ok": true}')

    assert response.ok
    assert response.json() == {"ok": True}
    assert not BankResponse(status=400, text="").ok

    with pytest.raises(ValueError):
        BankResponse(status=200, text="<html>").json()


@pytest.mark.asyncio
async def test_executor_timeout(fake_bank):
    fake_bank.set_response("pix_query", status=200, body={}, delay=1.0)
    executor = RequestExecutor(timeout_seconds=0.2)

    async with aiohttp.ClientSession() as session:
        with pytest.raises(GatewayTimeoutError) as exc_info:
            await executor.execute(session, "GET", f"{fake_bank.base_url}/v2/cob/abc")

    assert exc_info.value.retryable is True
    assert exc_info.value.details["timeout"] == 0.2


@pytest.mark.asyncio
async def test_executor_returns_non_2xx(fake_bank):
    fake_bank.set_response("pix_query", status=404, body={"detail": "não encontrada"})
    executor = RequestExecutor()

    async with aiohttp.ClientSession() as session:
        response = await executor.execute(session, "GET", f"{fake_bank.base_url}/v2/cob/abc")

    assert response.status == 404
    assert response.json() == {"detail": "não encontrada"}


@pytest.mark.asyncio
async def test_executor_transport_failure():
    executor = RequestExecutor(timeout_seconds=2)

    async with aiohttp.ClientSession() as session:
        with pytest.raises(TransportFailureError):
            await executor.execute(session, "GET", "http://127.0.0.1:1/v2/cob/abc")
