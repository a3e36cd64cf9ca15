# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for StructlogAdapter and StructlogRequestLogger."""

import logging

import structlog
from structlog.testing import capture_logs

from chainreq.core.config import Config
from chainreq.core.context import RequestContext
from chainreq.logging.port import LoggingPort
from chainreq.logging.structlog_adapter import StructlogAdapter, StructlogRequestLogger, _processors


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "INFO"
        assert adapter._format == "console"

    def test_configure_reads_level_and_format(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"chainreq": {"logging": {"level": "debug", "format": "JSON"}}}))
        assert adapter._root_level == "DEBUG"
        assert adapter._format == "json"

    def test_configure_applies_per_module_levels(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"chainreq": {"logging": {"levels": {"chainreq.client": "warning"}}}}))
        assert adapter._module_levels == {"chainreq.client": "WARNING"}
        assert logging.getLogger("chainreq.client").level == logging.WARNING

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CHAINREQ_LOGGING_LEVEL", "error")
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "ERROR"

    def test_renderer_follows_format(self):
        assert isinstance(_processors("json")[-1], structlog.processors.JSONRenderer)
        assert isinstance(_processors("console")[-1], structlog.dev.ConsoleRenderer)


class TestStructlogAdapterLoggers:
    def test_get_logger_returns_bound_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("chainreq.test")
        assert callable(getattr(logger, "info", None))

    def test_set_level(self):
        adapter = StructlogAdapter()
        adapter.set_level("chainreq.levels", "DEBUG")
        assert logging.getLogger("chainreq.levels").level == logging.DEBUG


class TestStructlogRequestLogger:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_renders_printf_message(self):
        with capture_logs() as logs:
            StructlogRequestLogger().info(None, "[chainreq] %s: %s", "GET", "http://example.com/")
        assert logs[0]["event"] == "[chainreq] GET: http://example.com/"
        assert logs[0]["log_level"] == "info"

    def test_binds_context_values(self):
        ctx = RequestContext.background().with_values(trace_id="t-1")
        with capture_logs() as logs:
            StructlogRequestLogger().error(ctx, "save cookies to %s failed: %s", "/tmp/c", "denied")
        assert logs[0]["trace_id"] == "t-1"
        assert logs[0]["log_level"] == "error"
        assert logs[0]["event"] == "save cookies to /tmp/c failed: denied"

    def test_message_without_args_is_left_alone(self):
        with capture_logs() as logs:
            StructlogRequestLogger().info(None, "100% done")
        assert logs[0]["event"] == "100% done"
