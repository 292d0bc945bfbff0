"""Inspect the certificate chain a TLS endpoint presents."""

import asyncio
import ssl

import httpx
from cryptography import x509


def _unverified_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


async def fetch_peer_certificates(url: str, timeout: float = 10.0) -> list[x509.Certificate]:
    """Handshake with the host in ``url`` and return the certificates it sent.

    Verification is off so that untrusted or rotating certificates can still
    be inspected. The handshake uses the URL host as SNI.
    """
    parsed = httpx.URL(url)
    host = parsed.host
    port = parsed.port or 443

    reader, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port, ssl=_unverified_context(), server_hostname=host),
        timeout=timeout,
    )
    try:
        ssl_obj = writer.get_extra_info("ssl_object")
        chain = _peer_chain_der(ssl_obj)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, ssl.SSLError):
            pass
    return [x509.load_der_x509_certificate(der) for der in chain]


def _peer_chain_der(ssl_obj: ssl.SSLObject) -> list[bytes]:
    # Python 3.13 exposes the full unverified chain; older versions only the leaf
    get_chain = getattr(ssl_obj, "get_unverified_chain", None)
    if get_chain is not None:
        return list(get_chain() or [])
    leaf = ssl_obj.getpeercert(binary_form=True)
    return [leaf] if leaf else []
