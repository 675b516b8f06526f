"""Integration tests for file-based configuration and engine bootstrap."""

import json

import pytest
import yaml

from rulegate.config import ConfigLoader, FilterSettings
from rulegate.gateway.filtering import FilterRequest, RequestBlockedError, RuleConfigError
from rulegate.main import create_rule_engine


class TestConfigurationIntegration:
    """Integration tests for the configuration system."""

    def test_config_loading_with_real_files(self, tmp_path, mock_environment_variables):
        """Test configuration loading with real YAML files."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()

        base_config = {
            "NAME": "left-pad",
            "UPSTREAM": "https://registry.internal",
            "registry": {
                "user": "broker",
                "password": "${REGISTRY_PASSWORD:changeme}",
            },
        }
        with open(config_dir / "config.yaml", "w") as f:
            yaml.dump(base_config, f)

        production_config = {
            "UPSTREAM": "https://registry.example.com",
            "registry": {"password": "${REGISTRY_PASSWORD}"},
        }
        with open(config_dir / "production.yaml", "w") as f:
            yaml.dump(production_config, f)

        loader = ConfigLoader(config_dir)

        development = loader.load_config_map("development")
        assert dict(development) == {
            "NAME": "left-pad",
            "UPSTREAM": "https://registry.internal",
            "registry_user": "broker",
            "registry_password": "changeme",
        }

        with mock_environment_variables(REGISTRY_PASSWORD="from-env"):
            production = loader.load_config_map("production")

        assert production["UPSTREAM"] == "https://registry.example.com"
        assert production["registry_password"] == "from-env"
        assert production["registry_user"] == "broker"


class TestCreateRuleEngine:
    """Integration tests for wiring settings into a rules engine."""

    def test_create_rule_engine_from_settings(self, tmp_path):
        """Test building an engine from settings, config files and a rule file."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            "NAME: left-pad\nregistry:\n  token: tok-123\n"
        )

        rules_file = tmp_path / "accept.yaml"
        rules_file.write_text(yaml.safe_dump([
            {
                "method": "get",
                "path": "/pkg/${NAME}",
                "origin": "https://up.example",
                "auth": {"scheme": "token", "token": "${registry_token}"},
            },
        ]))

        settings = FilterSettings(
            environment="test",
            config_dir=str(config_dir),
            rules_source=str(rules_file),
        )

        engine = create_rule_engine(settings, configure_logging=False)
        result = engine.match(FilterRequest(method="GET", url="/pkg/anything?x=1"))

        assert result.url == "https://up.example/pkg/left-pad?x=1"
        assert result.auth == "Token tok-123"

    def test_create_rule_engine_without_rules(self, tmp_path):
        """Test an engine without a rule source blocks every request."""
        settings = FilterSettings(environment="test", config_dir=str(tmp_path))

        engine = create_rule_engine(settings, configure_logging=False)

        assert engine.get_stats()["total_rules"] == 0
        with pytest.raises(RequestBlockedError):
            engine.match(FilterRequest(method="GET", url="/"))

    def test_create_rule_engine_invalid_rule_file(self, tmp_path):
        """Test a rule file that is not a list aborts engine creation."""
        rules_file = tmp_path / "accept.json"
        rules_file.write_text(json.dumps({"rules": []}))

        settings = FilterSettings(environment="test", config_dir=str(tmp_path), rules_source=str(rules_file))

        with pytest.raises(RuleConfigError, match="Expected a list of filter rules"):
            create_rule_engine(settings, configure_logging=False)
