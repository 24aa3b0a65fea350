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
"""Tests for Config loading, env overrides, and property binding."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import pytest

from edugate.config.properties import (
    AppProperties,
    ClientProperties,
    CsrfProperties,
    LoggingProperties,
    RateLimitProperties,
)
from edugate.core.config import Config, config_properties
from edugate.kernel.exceptions import ConfigurationException


class TestConfig:
    def test_get_nested_value(self):
        config = Config({"edugate": {"csrf": {"cookie_name": "x"}}})
        assert config.get("edugate.csrf.cookie_name") == "x"

    def test_get_with_default(self):
        assert Config({}).get("missing.key", "default") == "default"

    def test_env_var_override(self):
        os.environ["EDUGATE_CSRF_COOKIE_NAME"] = "env-cookie"
        try:
            config = Config({"edugate": {"csrf": {"cookie_name": "file-cookie"}}})
            assert config.get("edugate.csrf.cookie_name") == "env-cookie"
        finally:
            del os.environ["EDUGATE_CSRF_COOKIE_NAME"]

    def test_placeholder_with_default(self):
        config = Config({"edugate": {"rate_limit": {"redis_url": "${EDUGATE_TEST_UNSET_URL:redis://localhost}"}}})
        assert config.get("edugate.rate_limit.redis_url") == "redis://localhost"

    def test_unresolvable_placeholder_raises(self):
        config = Config({"edugate": {"client": {"base_url": "${EDUGATE_TEST_NOWHERE}"}}})
        with pytest.raises(ConfigurationException):
            config.get("edugate.client.base_url")

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "edugate.yaml"
        config_file.write_text("edugate:\n  app:\n    environment: development\n")
        config = Config.from_file(config_file)
        assert config.get("edugate.app.environment") == "development"
        # packaged defaults are still underneath
        assert config.get("edugate.csrf.header_name") == "x-csrf-token"

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "edugate.toml"
        config_file.write_text('[edugate.csrf]\ncookie_name = "toml-cookie"\n')
        config = Config.from_file(config_file)
        assert config.get("edugate.csrf.cookie_name") == "toml-cookie"

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(ConfigurationException, match="not found"):
            Config.from_file(tmp_path / "nope.yaml")

    def test_from_sources_merges_profiles(self, tmp_path: Path):
        (tmp_path / "edugate.yaml").write_text("edugate:\n  rate_limit:\n    key_prefix: base\n    fail_open: true\n")
        (tmp_path / "edugate-strict.yaml").write_text("edugate:\n  rate_limit:\n    fail_open: false\n")
        config = Config.from_sources(tmp_path, active_profiles=["strict"])
        assert config.get("edugate.rate_limit.key_prefix") == "base"
        assert config.get("edugate.rate_limit.fail_open") is False
        assert any("strict" in s for s in config.loaded_sources)

    def test_packaged_defaults(self, tmp_path: Path):
        config = Config.from_sources(tmp_path)
        assert config.get("edugate.csrf.max_age") == 86400
        assert config.get("edugate.client.cache_ttl") == 240
        assert config.get("edugate.rate_limit.exclude_paths") == ["/api/health"]


class TestConfigProperties:
    def test_bind_requires_decorator(self):
        @dataclass
        class Plain:
            value: int = 1

        with pytest.raises(ConfigurationException, match="not decorated"):
            Config({}).bind(Plain)

    def test_bind_dataclass_coerces_strings(self):
        @config_properties(prefix="edugate.sample")
        @dataclass
        class Sample:
            count: int = 1
            ratio: float = 0.5
            enabled: bool = False

        config = Config({"edugate": {"sample": {"count": "7", "ratio": "1.5", "enabled": "yes"}}})
        sample = config.bind(Sample)
        assert sample.count == 7
        assert sample.ratio == 1.5
        assert sample.enabled is True

    def test_csrf_defaults(self):
        props = Config({}).bind(CsrfProperties)
        assert props.cookie_name == "csrf-token"
        assert props.header_name == "x-csrf-token"
        assert props.max_age == 86400
        assert props.same_site == "lax"
        assert props.secure is None
        assert props.exempt_paths == ["/api/health"]

    def test_csrf_env_override_optional_bool(self, monkeypatch):
        monkeypatch.setenv("EDUGATE_CSRF_SECURE", "false")
        monkeypatch.setenv("EDUGATE_CSRF_EXEMPT_PATHS", "/api/health, /api/webhooks")
        props = Config({}).bind(CsrfProperties)
        assert props.secure is False
        assert props.exempt_paths == ["/api/health", "/api/webhooks"]

    def test_app_development_flag(self):
        assert Config({"edugate": {"app": {"environment": "development"}}}).bind(AppProperties).is_development
        assert not Config({}).bind(AppProperties).is_development

    def test_logging_defaults(self):
        props = Config({}).bind(LoggingProperties)
        assert props.level == {"root": "INFO"}
        assert props.format == "console"

    def test_rate_limit_pydantic_binding(self):
        config = Config(
            {
                "edugate": {
                    "rate_limit": {
                        "backend": "redis",
                        "redis_url": "redis://cache:6379/0",
                        "presets": {"auth": {"max_requests": 3, "window_seconds": 30}},
                        "rules": [{"pattern": "/api/auth/*", "preset": "AUTH", "per_endpoint": True}],
                    }
                }
            }
        )
        props = config.bind(RateLimitProperties)
        assert props.backend == "redis"
        assert props.presets["auth"].max_requests == 3
        assert props.rules[0].per_endpoint is True
        assert props.fail_open is True

    def test_rate_limit_env_override(self, monkeypatch):
        monkeypatch.setenv("EDUGATE_RATE_LIMIT_FAIL_OPEN", "false")
        props = Config({}).bind(RateLimitProperties)
        assert props.fail_open is False

    def test_rate_limit_invalid_backend_raises(self):
        config = Config({"edugate": {"rate_limit": {"backend": "memcached"}}})
        with pytest.raises(ConfigurationException, match="RateLimitProperties"):
            config.bind(RateLimitProperties)

    def test_rate_limit_invalid_preset_raises(self):
        config = Config({"edugate": {"rate_limit": {"presets": {"api": {"max_requests": 0, "window_seconds": 60}}}}})
        with pytest.raises(ConfigurationException):
            config.bind(RateLimitProperties)

    def test_invalid_env_value_raises(self, monkeypatch):
        monkeypatch.setenv("EDUGATE_CSRF_MAX_AGE", "forever")
        with pytest.raises(ConfigurationException, match="max_age"):
            Config({}).bind(CsrfProperties)

    def test_client_properties(self):
        props = Config({"edugate": {"client": {"base_url": "https://edu.example", "fetch_timeout": 1.5}}}).bind(
            ClientProperties
        )
        assert props.base_url == "https://edu.example"
        assert props.fetch_timeout == 1.5
        assert props.cache_ttl == 240

    def test_client_rejects_non_positive_ttl(self):
        with pytest.raises(ConfigurationException):
            Config({"edugate": {"client": {"cache_ttl": 0}}}).bind(ClientProperties)
