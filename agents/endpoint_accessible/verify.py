"""Wait for route and certificate changes to become observable.

Each helper wraps a predicate around poll_until_converged. "Not found" from
the API server is always transient here; what else counts as transient is
decided per helper and passed to the poller explicitly.
"""

import asyncio
import logging

from cryptography import x509

from shared.errors import NotYetObserved
from shared.poll import any_of, is_not_yet_observed, poll_until_converged
from shared.tools import cluster
from shared.tools.tls import fetch_peer_certificates

log = logging.getLogger("sentinel.verify")

# Transient: not created yet, or our read-modify-write lost a race
_API_TRANSIENT = any_of(is_not_yet_observed, cluster.is_not_found, cluster.is_conflict)


async def check_route_hostname(
    namespace: str, name: str, hostname: str,
    interval: float = 1.0, timeout: float = 60.0,
) -> int:
    """Wait until route ``namespace/name`` has ``spec.host == hostname``."""

    def host_matches() -> bool:
        host = cluster.get_route_host(namespace, name)
        if host != hostname:
            log.info("Route %s/%s host is %r, waiting for %r", namespace, name, host, hostname)
            return False
        return True

    return await poll_until_converged(
        host_matches, interval, timeout,
        is_transient=any_of(is_not_yet_observed, cluster.is_not_found),
    )


def _route_matches(entry: dict, namespace: str, name: str) -> bool:
    return entry.get("namespace") == namespace and entry.get("name") == name


async def update_component_route(
    component_route: dict, interval: float = 1.0, timeout: float = 60.0,
) -> int:
    """Set (or add) a component route in the cluster ingress config.

    ``component_route`` is a ComponentRouteSpec dict with at least
    ``namespace``, ``name`` and ``hostname``.
    """

    def apply() -> bool:
        ingress = cluster.get_ingress_config()
        spec = ingress.setdefault("spec", {})
        routes = spec.setdefault("componentRoutes", [])
        found = False
        for i, entry in enumerate(routes):
            if _route_matches(entry, component_route["namespace"], component_route["name"]):
                routes[i] = dict(component_route)
                found = True
        if not found:
            routes.append(dict(component_route))
        cluster.update_ingress_config(ingress)
        return True

    return await poll_until_converged(apply, interval, timeout, is_transient=_API_TRANSIENT)


async def remove_component_route(
    namespace: str, name: str, interval: float = 1.0, timeout: float = 60.0,
) -> int:
    """Drop the matching component route from the cluster ingress config, if present."""

    def remove() -> bool:
        ingress = cluster.get_ingress_config()
        routes = ingress.get("spec", {}).get("componentRoutes") or []
        kept = [r for r in routes if not _route_matches(r, namespace, name)]
        if len(kept) == len(routes):
            return True
        ingress["spec"]["componentRoutes"] = kept
        cluster.update_ingress_config(ingress)
        return True

    return await poll_until_converged(remove, interval, timeout, is_transient=_API_TRANSIENT)


async def wait_for_serving_certificate(
    url: str,
    expected: x509.Certificate,
    interval: float = 60.0,
    timeout: float = 600.0,
    fetch=fetch_peer_certificates,
) -> int:
    """Wait until ``url`` serves exactly one certificate with ``expected``'s subject."""

    async def serving_expected() -> bool:
        try:
            certs = await fetch(url)
        except (OSError, asyncio.TimeoutError) as e:
            raise NotYetObserved(f"handshake with {url} failed: {e}") from e
        if len(certs) != 1:
            log.info("Unexpected number of certificates returned: got %d, want 1", len(certs))
            return False
        if certs[0].subject != expected.subject:
            log.info(
                "Unexpected subject: got %s, want %s",
                certs[0].subject.rfc4514_string(), expected.subject.rfc4514_string(),
            )
            return False
        return True

    return await poll_until_converged(serving_expected, interval, timeout)
