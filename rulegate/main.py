"""
Request filter entry point.

This module wires settings, logging, the configuration mapping and the rule
source into a ready-to-use rules engine for the forwarding layer.
"""

from typing import Optional

from rulegate.config import FilterSettings, get_config_map, get_settings, load_rule_file
from rulegate.config.logging import get_logger, setup_logging
from rulegate.gateway.filtering import RuleEngine

logger = get_logger(__name__)


def create_rule_engine(settings: Optional[FilterSettings] = None, configure_logging: bool = True) -> RuleEngine:
    """
    Create a rules engine loaded with the configured rule source.

    Args:
        settings: Filter settings; read from the environment when None
        configure_logging: Whether to apply the logging settings

    Returns:
        Rules engine with its rule set loaded (empty, and so rejecting every
        request, when the rule source cannot be read)
    """
    settings = settings or get_settings()

    if configure_logging:
        setup_logging(
            log_level=settings.log_level,
            log_format=settings.log_format,
            log_file=settings.log_file
        )

    config_map = get_config_map(settings)
    engine = RuleEngine(config_map, loader=load_rule_file)
    engine.load(settings.rules_source)

    logger.info(
        "Request filter initialized",
        extra={"environment": settings.environment, "config_keys": len(config_map)}
    )

    return engine
