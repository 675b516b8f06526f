"""Test fixtures for request filter tests."""

import json
from types import MappingProxyType

import pytest
import yaml

from rulegate.gateway.filtering import FilterRequest, RuleEngine


@pytest.fixture
def sample_config_map():
    """Create a sample read-only configuration mapping."""
    return MappingProxyType({
        "NAME": "left-pad",
        "UPSTREAM": "https://registry.internal",
        "REGISTRY_USER": "broker",
        "REGISTRY_PASSWORD": "s3cret",
        "API_TOKEN": "tok-123",
        "ORG": "acme",
    })


@pytest.fixture
def sample_rules():
    """Create a representative list of raw filter rules."""
    return [
        {
            "method": "GET",
            "path": "/pkg/${NAME}",
            "origin": "https://up.example",
        },
        {
            "method": "post",
            "path": "/graphql",
            "origin": "${UPSTREAM}",
            "valid": [
                {"path": "query.type", "value": ["read"]},
                {"path": "query.name", "regex": "^repo-[a-z]+$"},
            ],
            "auth": {"scheme": "token", "token": "${API_TOKEN}"},
        },
        {
            "method": "any",
            "path": "/orgs/${ORG}/repos/:repo",
            "origin": "https://api.example",
            "valid": [
                {"queryParam": "tag", "values": ["v1.*"]},
                {"header": "x-api-key", "values": ["abc"]},
            ],
            "stream": True,
            "auth": {"scheme": "basic", "username": "${REGISTRY_USER}", "password": "${REGISTRY_PASSWORD}"},
        },
    ]


@pytest.fixture
def sample_engine(sample_config_map, sample_rules):
    """Create a rules engine loaded with the sample rules."""
    engine = RuleEngine(sample_config_map)
    engine.load(sample_rules)
    return engine


@pytest.fixture
def make_request():
    """Build filter requests with sensible defaults."""
    def _make_request(method="GET", url="/", headers=None, body=None):
        return FilterRequest(method=method, url=url, headers=headers or {}, body=body)

    return _make_request


@pytest.fixture
def rules_json_file(tmp_path, sample_rules):
    """Write the sample rules to a JSON file."""
    rules_file = tmp_path / "accept.json"
    rules_file.write_text(json.dumps(sample_rules))
    return rules_file


@pytest.fixture
def rules_yaml_file(tmp_path, sample_rules):
    """Write the sample rules to a YAML file."""
    rules_file = tmp_path / "accept.yaml"
    rules_file.write_text(yaml.safe_dump(sample_rules))
    return rules_file
