"""Reachability check for a dynamically listed set of endpoints."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from shared.errors import EndpointsInaccessible, SourceUnavailable
from shared.poll import call
from shared.tools.endpoints import ProbeResult, check_endpoint, to_healthz_urls

log = logging.getLogger("sentinel.endpoint_accessible")

EndpointListFunc = Callable[[], "list[str] | Awaitable[list[str]]"]


class EndpointAccessibleController:
    """Probes ``https://<endpoint>/healthz`` for every endpoint the source lists.

    One sync is one pass: list, probe everything, decide. Retrying is left to
    whoever schedules the next sync.
    """

    def __init__(
        self,
        name: str,
        endpoint_list_fn: EndpointListFunc,
        probe_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = name
        self.endpoint_list_fn = endpoint_list_fn
        self.probe_timeout = probe_timeout
        self.transport = transport

    async def _list_endpoints(self) -> list[str]:
        return list(await call(self.endpoint_list_fn))

    async def probe(self, endpoints: list[str]) -> list[ProbeResult]:
        """Probe all endpoints concurrently, results in input order."""
        urls = to_healthz_urls(endpoints)
        return await asyncio.gather(
            *(check_endpoint(url, timeout=self.probe_timeout, transport=self.transport) for url in urls)
        )

    async def sync(self) -> None:
        """Raise SourceUnavailable or EndpointsInaccessible, or return None if all is well."""
        try:
            endpoints = await self._list_endpoints()
        except Exception as e:
            raise SourceUnavailable(self.name, e) from e

        if not endpoints:
            log.debug("%s: no endpoints to check", self.name)
            return

        results = await self.probe(endpoints)
        failures = [r for r in results if not r.healthy]
        for r in failures:
            log.debug("%s: %s failed: %s", self.name, r.url, r.describe())
        if failures:
            raise EndpointsInaccessible(self.name, failures)
        log.debug("%s: %d endpoint(s) accessible", self.name, len(results))
