"""Main entry point: async reconcile loop for Route Sentinel."""

import asyncio
import logging
import signal
import sys
from typing import Protocol

from agents.endpoint_accessible.conditions import ConditionTracker, condition_from_sync
from agents.endpoint_accessible.controller import EndpointAccessibleController
from shared.config import load_config
from shared.tools.cluster import endpoints_source, route_host_source, service_source
from shared.tools.slack import send_slack_alert

log = logging.getLogger("sentinel")


class ReconcileTrigger(Protocol):
    async def wait(self) -> bool:
        """Block until the next reconcile is due. False means stop."""
        ...


class PeriodicTrigger:
    """Fires immediately, then every ``interval`` seconds until ``shutdown`` is set."""

    def __init__(self, interval: float, shutdown: asyncio.Event):
        self.interval = interval
        self.shutdown = shutdown
        self._fired = False

    async def wait(self) -> bool:
        if self.shutdown.is_set():
            return False
        if not self._fired:
            self._fired = True
            return True
        try:
            await asyncio.wait_for(self.shutdown.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return True
        return False


def build_controllers(config) -> list[EndpointAccessibleController]:
    ns = config.oauth_namespace
    sources = {
        "OAuthServerRouteEndpointAccessibleController": route_host_source(ns, config.oauth_route_name),
        "OAuthServerServiceEndpointAccessibleController": service_source(
            ns, config.oauth_service_name, config.oauth_service_port,
        ),
        "OAuthServerServiceEndpointsEndpointAccessibleController": endpoints_source(
            ns, config.oauth_service_name, config.oauth_endpoints_port,
        ),
    }
    return [
        EndpointAccessibleController(name, fn, probe_timeout=config.probe_timeout_seconds)
        for name, fn in sources.items()
    ]


async def reconcile_once(config, controllers, tracker: ConditionTracker) -> None:
    """Sync every controller once and report condition transitions."""
    for controller in controllers:
        try:
            await controller.sync()
            exc = None
        except Exception as e:
            exc = e

        cond = condition_from_sync(controller.name, exc)
        if cond.degraded:
            log.warning("%s=True (%s): %s", cond.type, cond.reason, cond.message)
        else:
            log.info("%s=False", cond.type)

        if tracker.update(cond) and config.slack_webhook_url:
            await send_slack_alert(
                config,
                severity="critical" if cond.degraded else "resolved",
                title=f"{cond.type} is {cond.status}",
                message=cond.message,
            )


async def run(config, trigger: ReconcileTrigger, controllers) -> None:
    tracker = ConditionTracker()
    while await trigger.wait():
        try:
            await reconcile_once(config, controllers, tracker)
        except Exception:
            log.exception("Reconcile pass failed")


async def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    config = load_config()
    log.info("Route Sentinel starting")
    log.info("Check interval: %ds, probe timeout: %.1fs",
             config.check_interval_seconds, config.probe_timeout_seconds)

    shutdown = asyncio.Event()

    def handle_signal():
        log.info("Shutdown signal received")
        shutdown.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal)

    trigger = PeriodicTrigger(config.check_interval_seconds, shutdown)
    await run(config, trigger, build_controllers(config))

    log.info("Route Sentinel stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
