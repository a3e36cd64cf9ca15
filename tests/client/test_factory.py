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
"""Tests for Factory, request options and configuration-driven defaults."""

from datetime import timedelta

from chainreq.client.factory import Factory, new_factory
from chainreq.client.options import (
    with_base_url,
    with_context,
    with_header,
    with_headers,
    with_ignore_ssl,
    with_logger,
    with_redirect,
    with_timeout,
    with_transport,
    with_user_agent,
)
from chainreq.core.config import Config
from chainreq.core.context import RequestContext
from chainreq.kernel.exceptions import ConfigurationException


class TestFactory:
    def test_options_applied_in_order(self, ok_transport):
        factory = new_factory(
            with_transport(ok_transport),
            with_header("X-A", "1"),
            with_headers({"X-B": "2"}),
            with_user_agent("first/1"),
            with_user_agent("second/2"),
            with_timeout(timedelta(seconds=5)),
        )
        req = factory.new("GET", "http://example.com/")

        assert req.request_headers["x-a"] == "1"
        assert req.request_headers["x-b"] == "2"
        assert req.request_headers["user-agent"] == "second/2"
        assert req.timeout == timedelta(seconds=5)
        assert req.text() == "ok"

    def test_each_request_is_independent(self, ok_transport):
        factory = Factory(with_transport(ok_transport))
        first = factory.new("GET", "http://example.com/a")
        second = factory.new("GET", "http://example.com/b")
        first.content()
        second.content()
        assert ok_transport.sends == 2
        assert first is not second

    def test_failing_option_stops_application(self, ok_transport):
        applied = []

        def broken(request):
            raise ConfigurationException("broken option")

        factory = Factory(with_transport(ok_transport), broken, lambda r: applied.append(r))
        req = factory.new("GET", "http://example.com/")

        assert isinstance(req.error, ConfigurationException)
        assert applied == []
        assert req.must_text() == ""
        assert ok_transport.sends == 0

    def test_option_leaving_sticky_error_stops_application(self):
        applied = []
        factory = Factory(with_timeout(-5), lambda r: applied.append(r))
        req = factory.new("GET", "http://example.com/")
        assert isinstance(req.error, ConfigurationException)
        assert applied == []

    def test_remaining_options(self, ok_transport, recording_logger):
        ctx = RequestContext.background().with_values(job="sync")
        req = Factory(
            with_transport(ok_transport),
            with_logger(recording_logger),
            with_context(ctx),
            with_ignore_ssl(),
            with_redirect(False),
            with_base_url("http://example.com/v1/"),
        ).new("GET", "items")

        req.content()
        sent = ok_transport.requests[0]
        assert sent.url == "http://example.com/v1/items"
        assert sent.verify is False
        assert sent.follow_redirects is False
        assert sent.context is ctx
        assert recording_logger.infos


class TestFactoryFromConfig:
    def test_defaults_from_config(self, ok_transport):
        config = Config(
            {
                "chainreq": {
                    "request": {
                        "timeout": 3,
                        "user_agent": "cfg/1",
                        "follow_redirects": False,
                        "base_url": "http://example.com/",
                        "headers": {"X-Team": "core"},
                    }
                }
            }
        )
        req = Factory.from_config(config, with_transport(ok_transport)).new("GET", "ping")

        assert req.timeout == timedelta(seconds=3)
        assert req.request_headers["user-agent"] == "cfg/1"
        assert req.request_headers["x-team"] == "core"
        req.content()
        assert ok_transport.requests[0].url == "http://example.com/ping"
        assert ok_transport.requests[0].follow_redirects is False

    def test_empty_config_means_no_timeout(self):
        req = Factory.from_config(Config({})).new("GET", "http://example.com/")
        assert req.timeout is None
        assert req.error is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CHAINREQ_REQUEST_TIMEOUT", "7.5")
        req = Factory.from_config(Config({})).new("GET", "http://example.com/")
        assert req.timeout == timedelta(seconds=7.5)
