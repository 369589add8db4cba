"""Configuration models and parser for relay.yaml."""

from agent_relay.config.models import AgentSettings, RelayConfig
from agent_relay.config.parser import ConfigError, load_config

__all__ = [
    "AgentSettings",
    "ConfigError",
    "RelayConfig",
    "load_config",
]
