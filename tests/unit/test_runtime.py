"""Unit tests for BackendRuntime, RecordingBackend, fetchers and log sinks."""

from __future__ import annotations

import logging
import sys
import types

import pytest

from analytics_proxy.core.fetchers import InstallerFetcher, resolve_entry_point
from analytics_proxy.core.log_sink import LoggerSink
from analytics_proxy.runtime import BackendRuntime, RecordingBackend


class TestBackendRuntime:
    """Publishing, lookup and removal of client handles."""

    def test_publish_and_get(self):
        runtime = BackendRuntime()
        client = object()
        runtime.publish("mixpanel", client)
        assert runtime.get("mixpanel") is client
        assert "mixpanel" in runtime
        assert runtime.names() == ["mixpanel"]

    def test_missing_client_is_none(self):
        assert BackendRuntime().get("gtag") is None

    def test_remove_and_clear(self):
        runtime = BackendRuntime({"a": 1, "b": 2})
        runtime.remove("a")
        runtime.remove("missing")
        assert runtime.names() == ["b"]
        runtime.clear()
        assert runtime.names() == []


class TestRecordingBackend:
    """Every attribute access yields a recorder."""

    def test_records_method_calls(self):
        backend = RecordingBackend("mixpanel")
        backend.track("Signup", {"plan": "pro"}, send_immediately=True)
        (call,) = backend.calls
        assert call.method == "track"
        assert call.args == ("Signup", {"plan": "pro"})
        assert call.kwargs == {"send_immediately": True}

    def test_nested_and_chained_calls(self):
        backend = RecordingBackend("amplitude")
        backend.people.set({"$email": "a@b.c"})
        backend.getInstance().logEvent("E", None)
        assert [c.method for c in backend.calls] == ["people.set", "getInstance", "logEvent"]

    def test_calling_backend_records_its_name(self):
        gtag = RecordingBackend("gtag")
        gtag("event", "Signup", {})
        assert gtag.calls_to("gtag")[0].args == ("event", "Signup", {})

    def test_private_attributes_are_not_recorded(self):
        backend = RecordingBackend("x")
        with pytest.raises(AttributeError):
            backend._secret
        assert not hasattr(backend.people, "_internal")

    def test_reset(self):
        backend = RecordingBackend("x")
        backend.ping()
        backend.reset()
        assert backend.calls == []
        assert repr(backend) == "RecordingBackend('x', calls=0)"


class TestInstallerFetcher:
    """Installers publish clients; missing installers follow strictness."""

    @pytest.mark.asyncio
    async def test_sync_installer(self):
        runtime = BackendRuntime()
        fetcher = InstallerFetcher(
            runtime, {"sdk": lambda rt, options: rt.publish("client", options["flavour"])}
        )
        await fetcher("sdk", {"flavour": "vanilla"})
        assert runtime.get("client") == "vanilla"

    @pytest.mark.asyncio
    async def test_async_installer(self):
        runtime = BackendRuntime()

        async def install(rt, options) -> None:
            rt.publish("client", "async")

        fetcher = InstallerFetcher(runtime)
        fetcher.register("sdk", install)
        await fetcher("sdk", {})
        assert runtime.get("client") == "async"

    @pytest.mark.asyncio
    async def test_entry_point_installer(self, monkeypatch):
        module = types.ModuleType("vendor_shim")

        def install(rt, options) -> None:
            rt.publish("client", "from-entry-point")

        module.install = install
        monkeypatch.setitem(sys.modules, "vendor_shim", module)

        runtime = BackendRuntime()
        fetcher = InstallerFetcher(runtime, {"sdk": "vendor_shim:install"})
        await fetcher("sdk", {})
        assert runtime.get("client") == "from-entry-point"

    @pytest.mark.asyncio
    async def test_missing_installer_is_a_no_op(self):
        runtime = BackendRuntime()
        await InstallerFetcher(runtime)("sdk", {})
        assert runtime.names() == []

    @pytest.mark.asyncio
    async def test_missing_installer_fails_when_strict(self):
        with pytest.raises(LookupError):
            await InstallerFetcher(BackendRuntime(), strict=True)("sdk", {})

    def test_resolve_entry_point(self):
        assert resolve_entry_point("json:dumps")({"a": 1}) == '{"a": 1}'

    def test_resolve_entry_point_rejects_bad_format(self):
        with pytest.raises(ValueError):
            resolve_entry_point("json.dumps")


class TestLoggerSink:
    """LoggerSink forwards to logging, escalating exceptions."""

    def test_plain_message_uses_configured_level(self, caplog):
        sink = LoggerSink(logging.getLogger("analytics_proxy.test"), level=logging.INFO, prefix="[X] ")
        with caplog.at_level(logging.INFO, logger="analytics_proxy.test"):
            sink("hello", {"a": 1})
        (record,) = caplog.records
        assert record.levelno == logging.INFO
        assert record.getMessage() == "[X] hello: {'a': 1}"

    def test_exception_data_is_escalated(self, caplog):
        sink = LoggerSink(logging.getLogger("analytics_proxy.test"))
        with caplog.at_level(logging.DEBUG, logger="analytics_proxy.test"):
            sink("failed", RuntimeError("boom"))
        assert caplog.records[-1].levelno == logging.WARNING
