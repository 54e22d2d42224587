"""
Tests for configuration loading and validation.
"""

import pytest

from kopendata.config import AuthStrategy, ClientConfig, RetryPolicy, load_config
from kopendata.exceptions import ConfigurationError

DEFAULTS = {"base_url": "http://api.hrfco.go.kr"}


def env_from(values):
    return values.get


class TestLoadConfig:
    def test_defaults(self):
        config = load_config("HRFCO", env=env_from({}), defaults=DEFAULTS)

        assert config.base_url == "http://api.hrfco.go.kr"
        assert config.api_key is None
        assert config.auth_strategy == AuthStrategy.PATH_KEY
        assert config.timeout == 10.0
        assert config.retry == RetryPolicy()
        assert config.response_format == "json"

    def test_environment_values(self):
        env = env_from(
            {
                "HRFCO_API_KEY": "from-env",
                "HRFCO_BASE_URL": "https://proxy.example.kr/hrfco/",
                "HRFCO_AUTH_STRATEGY": "service",
                "HRFCO_TIMEOUT": "5",
                "HRFCO_RETRY_ATTEMPTS": "2",
                "HRFCO_RESPONSE_FORMAT": "XML",
            }
        )

        config = load_config("hrfco", env=env, defaults=DEFAULTS)

        assert config.api_key == "from-env"
        assert config.base_url == "https://proxy.example.kr/hrfco"
        assert config.auth_strategy == AuthStrategy.SERVICE_KEY
        assert config.timeout == 5.0
        assert config.retry.attempts == 2
        assert config.response_format == "xml"

    def test_overrides_win_over_environment(self):
        env = env_from({"HRFCO_API_KEY": "from-env", "HRFCO_TIMEOUT": "5"})

        config = load_config(
            "HRFCO",
            overrides={"api_key": "explicit", "timeout": 3.0, "base_url": None},
            env=env,
            defaults=DEFAULTS,
        )

        assert config.api_key == "explicit"
        assert config.timeout == 3.0
        assert config.base_url == "http://api.hrfco.go.kr"

    def test_auth_strategy_by_name(self):
        config = load_config(
            "HRFCO", overrides={"auth_strategy": "service_key"}, env=env_from({}), defaults=DEFAULTS
        )
        assert config.auth_strategy == AuthStrategy.SERVICE_KEY

    def test_unparseable_timeout_falls_back_to_default(self):
        config = load_config("HRFCO", env=env_from({"HRFCO_TIMEOUT": "soon"}), defaults=DEFAULTS)
        assert config.timeout == 10.0

    def test_credential_prefers_api_key(self):
        config = ClientConfig(base_url="http://x.kr", api_key="a", service_key="s")
        assert config.credential == "a"
        assert ClientConfig(base_url="http://x.kr", service_key="s").credential == "s"


class TestValidation:
    def test_missing_base_url(self):
        with pytest.raises(ConfigurationError, match="Base URL is required"):
            load_config("HRFCO", env=env_from({}))

    @pytest.mark.parametrize("url", ["ftp://api.hrfco.go.kr", "api.hrfco.go.kr", "http://"])
    def test_invalid_base_url(self, url):
        with pytest.raises(ConfigurationError, match="Invalid base URL"):
            load_config("HRFCO", overrides={"base_url": url}, env=env_from({}))

    @pytest.mark.parametrize("attempts", [0, 6])
    def test_retry_attempts_out_of_range(self, attempts):
        with pytest.raises(ConfigurationError, match="Retry attempts"):
            load_config(
                "HRFCO", overrides={"retry_attempts": attempts}, env=env_from({}), defaults=DEFAULTS
            )

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError, match="Timeout must be positive"):
            load_config("HRFCO", env=env_from({"HRFCO_TIMEOUT": "-1"}), defaults=DEFAULTS)

    def test_unknown_auth_strategy(self):
        with pytest.raises(ConfigurationError, match="Unknown auth strategy"):
            load_config(
                "HRFCO", env=env_from({"HRFCO_AUTH_STRATEGY": "cookie"}), defaults=DEFAULTS
            )

    def test_unknown_response_format(self):
        with pytest.raises(ConfigurationError, match="Response format"):
            load_config(
                "HRFCO", overrides={"response_format": "csv"}, env=env_from({}), defaults=DEFAULTS
            )
