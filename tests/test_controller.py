"""Unit tests for the endpoint reachability controller."""

import asyncio
import time

import httpx
import pytest

from agents.endpoint_accessible.controller import EndpointAccessibleController
from shared.errors import EndpointsInaccessible, ProbeFailureReason, SourceUnavailable


class _FakeCluster:
    """MockTransport handler: hosts listed in ``down`` refuse connections."""

    def __init__(self, down=(), status=None):
        self.down = set(down)
        self.status = status or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if any(host in url for host in self.down):
            raise httpx.ConnectError("no such host", request=request)
        for host, code in self.status.items():
            if host in url:
                return httpx.Response(code)
        return httpx.Response(200, text="ok")


def _controller(endpoints, cluster: _FakeCluster) -> EndpointAccessibleController:
    def list_endpoints():
        if isinstance(endpoints, Exception):
            raise endpoints
        return endpoints

    return EndpointAccessibleController(
        "test", list_endpoints, probe_timeout=1.0, transport=httpx.MockTransport(cluster),
    )


class TestSync:
    @pytest.mark.asyncio
    async def test_all_endpoints_working(self):
        cluster = _FakeCluster()
        ctrl = _controller(["google.com", "oauth.example.com"], cluster)

        assert await ctrl.sync() is None
        assert len(cluster.requests) == 2

    @pytest.mark.asyncio
    async def test_scheme_prefixed_endpoint_is_not_normalized(self):
        # Endpoints are host[:port]; a scheme is prefixed again, not stripped
        cluster = _FakeCluster()
        ctrl = _controller(["https://google.com"], cluster)

        await ctrl.sync()

        assert [r.url.host for r in cluster.requests] == ["https"]

    @pytest.mark.asyncio
    async def test_empty_list_is_healthy(self):
        cluster = _FakeCluster()
        ctrl = _controller([], cluster)

        assert await ctrl.sync() is None
        assert cluster.requests == []

    @pytest.mark.asyncio
    async def test_lister_error_makes_no_probes(self):
        cluster = _FakeCluster()
        cause = RuntimeError("some error")
        ctrl = _controller(cause, cluster)

        with pytest.raises(SourceUnavailable) as excinfo:
            await ctrl.sync()

        assert excinfo.value.__cause__ is cause
        assert "some error" in str(excinfo.value)
        assert cluster.requests == []

    @pytest.mark.asyncio
    async def test_non_working_endpoint_is_named(self):
        cluster = _FakeCluster(down=["nonexistenturl.com"])
        ctrl = _controller(["https://google.com", "https://nonexistenturl.com"], cluster)

        with pytest.raises(EndpointsInaccessible) as excinfo:
            await ctrl.sync()

        err = excinfo.value
        assert "nonexistenturl.com" in str(err)
        assert "google.com" not in str(err).replace("nonexistenturl.com", "")
        assert len(err.failures) == 1
        assert err.failures[0].reason == ProbeFailureReason.UNREACHABLE
        # partial success still waits for every probe
        assert len(cluster.requests) == 2

    @pytest.mark.asyncio
    async def test_invalid_url_is_malformed(self):
        cluster = _FakeCluster()
        ctrl = _controller(["htt//bad`string"], cluster)

        with pytest.raises(EndpointsInaccessible) as excinfo:
            await ctrl.sync()

        failures = excinfo.value.by_reason(ProbeFailureReason.MALFORMED)
        assert len(failures) == 1
        assert failures[0].url == "https://htt//bad`string/healthz"
        assert excinfo.value.by_reason(ProbeFailureReason.TIMEOUT) == []
        assert cluster.requests == []

    @pytest.mark.asyncio
    async def test_one_malformed_among_healthy_fails(self):
        cluster = _FakeCluster()
        ctrl = _controller(["a.example.com", "bad`host", "b.example.com"], cluster)

        with pytest.raises(EndpointsInaccessible) as excinfo:
            await ctrl.sync()

        assert [f.url for f in excinfo.value.failures] == ["https://bad`host/healthz"]
        assert len(cluster.requests) == 2

    @pytest.mark.asyncio
    async def test_every_failure_is_listed(self):
        cluster = _FakeCluster(down=["down.example.com"], status={"sick.example.com": 500})
        ctrl = _controller(["down.example.com", "ok.example.com", "sick.example.com"], cluster)

        with pytest.raises(EndpointsInaccessible) as excinfo:
            await ctrl.sync()

        msg = str(excinfo.value)
        assert "down.example.com" in msg
        assert "sick.example.com" in msg
        assert "HTTP 500" in msg
        assert "2 endpoint(s)" in msg

    @pytest.mark.asyncio
    async def test_async_source(self):
        cluster = _FakeCluster()

        async def list_endpoints():
            await asyncio.sleep(0)
            return ["a.example.com"]

        ctrl = EndpointAccessibleController(
            "test", list_endpoints, transport=httpx.MockTransport(cluster),
        )
        await ctrl.sync()
        assert len(cluster.requests) == 1

    @pytest.mark.asyncio
    async def test_source_is_called_on_every_sync(self):
        cluster = _FakeCluster()
        calls = []

        def list_endpoints():
            calls.append(1)
            return ["a.example.com"]

        ctrl = EndpointAccessibleController(
            "test", list_endpoints, transport=httpx.MockTransport(cluster),
        )
        await ctrl.sync()
        await ctrl.sync()
        assert len(calls) == 2


class TestProbe:
    @pytest.mark.asyncio
    async def test_results_follow_input_order(self):
        cluster = _FakeCluster(down=["b.example.com"])
        ctrl = _controller([], cluster)

        results = await ctrl.probe(["a.example.com", "b.example.com", "c.example.com"])

        assert [r.url for r in results] == [
            "https://a.example.com/healthz",
            "https://b.example.com/healthz",
            "https://c.example.com/healthz",
        ]
        assert [r.healthy for r in results] == [True, False, True]


class TestFailuresAreAggregated:
    @pytest.mark.asyncio
    async def test_out_of_range_port_keeps_other_results(self):
        cluster = _FakeCluster(down=["down.example.com"])
        ctrl = _controller(["127.0.0.1:99999", "down.example.com", "ok.example.com"], cluster)

        with pytest.raises(EndpointsInaccessible) as excinfo:
            await ctrl.sync()

        reasons = {f.url: f.reason for f in excinfo.value.failures}
        assert reasons == {
            "https://127.0.0.1:99999/healthz": ProbeFailureReason.MALFORMED,
            "https://down.example.com/healthz": ProbeFailureReason.UNREACHABLE,
        }
        assert len(cluster.requests) == 2


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_during_blocking_source(self):
        cluster = _FakeCluster()

        def slow_source():
            time.sleep(0.5)
            return ["a.example.com"]

        ctrl = EndpointAccessibleController(
            "test", slow_source, transport=httpx.MockTransport(cluster),
        )
        task = asyncio.create_task(ctrl.sync())
        await asyncio.sleep(0.05)

        start = time.monotonic()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert time.monotonic() - start < 0.3
        assert cluster.requests == []

    @pytest.mark.asyncio
    async def test_cancel_during_probes(self):
        started = asyncio.Event()

        async def list_endpoints():
            return ["a.example.com"]

        async def hang(request):
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200)

        ctrl = EndpointAccessibleController("test", list_endpoints, transport=httpx.MockTransport(hang))
        task = asyncio.create_task(ctrl.sync())
        await asyncio.wait_for(started.wait(), timeout=1.0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, timeout=1.0)
