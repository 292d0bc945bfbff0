"""HTTP endpoint health probes."""

import re
import time
from dataclasses import dataclass

import httpx

from shared.errors import ProbeFailureReason

# RFC 3986 unreserved, reserved and percent characters, plus non-ASCII
# text for internationalized hosts (httpx IDNA-encodes them)
_URL_CHARS = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%\u00a0-\U0010ffff]+$")


@dataclass
class ProbeResult:
    url: str
    healthy: bool
    status_code: int | None = None
    response_time_ms: int | None = None
    reason: ProbeFailureReason | None = None
    error: str | None = None

    def describe(self) -> str:
        if self.healthy:
            return "ok"
        if self.reason == ProbeFailureReason.BAD_STATUS:
            return f"HTTP {self.status_code}"
        return f"{self.reason.value}: {self.error}"


def to_healthz_url(endpoint: str) -> str:
    return f"https://{endpoint}/healthz"


def to_healthz_urls(endpoints: list[str]) -> list[str]:
    """Map base endpoints to their /healthz URLs, keeping order and duplicates."""
    return [to_healthz_url(ep) for ep in endpoints]


def validate_url(url: str) -> str | None:
    """Return why ``url`` cannot be requested, or None if it looks dispatchable."""
    if not _URL_CHARS.match(url):
        return "contains characters not allowed in a URL"
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        return str(e)
    if parsed.scheme not in ("http", "https"):
        return f"unsupported scheme {parsed.scheme!r}"
    if not parsed.host:
        return "missing host"
    if parsed.port is not None and not 1 <= parsed.port <= 65535:
        return f"port {parsed.port} out of range"
    return None


async def check_endpoint(
    url: str,
    timeout: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProbeResult:
    """Probe an HTTP(S) endpoint once. Any 2xx response counts as healthy.

    Certificates are not verified: the probe answers "is it serving", not
    "is it trusted". Never raises for probe failures; cancellation propagates.
    """
    problem = validate_url(url)
    if problem is not None:
        return ProbeResult(
            url=url,
            healthy=False,
            reason=ProbeFailureReason.MALFORMED,
            error=problem,
        )

    start = time.monotonic()
    try:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, verify=False, transport=transport,
        ) as client:
            resp = await client.get(url)
    except httpx.TimeoutException as e:
        return ProbeResult(
            url=url,
            healthy=False,
            reason=ProbeFailureReason.TIMEOUT,
            error=str(e) or "timeout",
        )
    except httpx.InvalidURL as e:
        return ProbeResult(
            url=url,
            healthy=False,
            reason=ProbeFailureReason.MALFORMED,
            error=str(e),
        )
    except Exception as e:
        # Transport internals can fail outside httpx's hierarchy
        return ProbeResult(
            url=url,
            healthy=False,
            reason=ProbeFailureReason.UNREACHABLE,
            error=str(e) or type(e).__name__,
        )
    elapsed_ms = round((time.monotonic() - start) * 1000)

    healthy = 200 <= resp.status_code < 300
    return ProbeResult(
        url=url,
        healthy=healthy,
        status_code=resp.status_code,
        response_time_ms=elapsed_ms,
        reason=None if healthy else ProbeFailureReason.BAD_STATUS,
    )
