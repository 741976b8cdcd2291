"""
toolgate Configuration - YAML config with ${VAR} environment substitution.

Example config.yaml::

    state_dir: ~/.toolgate
    past_due_policy: reject          # or fire_immediately
    max_sleep_seconds: 60
    klaviyo:
      revision: "2025-07-15"
      base_url: https://a.klaviyo.com/api
    server:
      api_key: ${TOOLGATE_API_KEY}
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .integrations.klaviyo.client import BASE_URL, KLAVIYO_REVISION
from .scheduling.models import PastDuePolicy

logger = logging.getLogger(__name__)

CONFIG_ENV = "TOOLGATE_CONFIG"
API_KEY_ENV = "TOOLGATE_API_KEY"


def _load_config(path: str) -> dict:
    """Read YAML config file with ${VAR} environment variable substitution."""
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    # Replace ${VAR} with environment variable values
    def _replace_env(match):
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(
                f"Environment variable '{var_name}' not set "
                f"(referenced in config file '{path}')"
            )
        return value

    resolved = re.sub(r"\$\{(\w+)\}", _replace_env, raw)
    return yaml.safe_load(resolved) or {}


@dataclass
class KlaviyoConfig:
    revision: str = KLAVIYO_REVISION
    base_url: str = BASE_URL


@dataclass
class ServerConfig:
    api_key: Optional[str] = None


@dataclass
class ToolGateConfig:
    """Runtime settings for sessions, the dispatcher and the HTTP surface.

    Attributes:
        state_dir: Directory for the pending-call and schedule stores.
            None keeps everything in memory.
        past_due_policy: What to do with one-shot times already elapsed.
        max_sleep_seconds: Upper bound on the dispatcher's sleep between checks.
        klaviyo: Klaviyo API revision and base URL.
        server: HTTP surface settings (optional X-API-Key).
    """
    state_dir: Optional[str] = None
    past_due_policy: PastDuePolicy = PastDuePolicy.REJECT
    max_sleep_seconds: float = 60.0
    klaviyo: KlaviyoConfig = field(default_factory=KlaviyoConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ToolGateConfig":
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")

        try:
            policy = PastDuePolicy(data.get("past_due_policy", PastDuePolicy.REJECT.value))
        except ValueError:
            raise ConfigError(
                f"Invalid past_due_policy: {data.get('past_due_policy')!r} "
                f"(expected one of {[p.value for p in PastDuePolicy]})"
            )

        max_sleep = data.get("max_sleep_seconds", 60.0)
        if isinstance(max_sleep, bool) or not isinstance(max_sleep, (int, float)) or max_sleep <= 0:
            raise ConfigError(f"max_sleep_seconds must be a positive number, got {max_sleep!r}")

        klaviyo_cfg = data.get("klaviyo") or {}
        server_cfg = data.get("server") or {}
        if not isinstance(klaviyo_cfg, dict) or not isinstance(server_cfg, dict):
            raise ConfigError("'klaviyo' and 'server' sections must be mappings")

        state_dir = data.get("state_dir")
        return cls(
            state_dir=str(state_dir) if state_dir else None,
            past_due_policy=policy,
            max_sleep_seconds=float(max_sleep),
            klaviyo=KlaviyoConfig(
                revision=str(klaviyo_cfg.get("revision", KLAVIYO_REVISION)),
                base_url=str(klaviyo_cfg.get("base_url", BASE_URL)),
            ),
            server=ServerConfig(
                api_key=server_cfg.get("api_key") or os.environ.get(API_KEY_ENV) or None,
            ),
        )

    @classmethod
    def from_file(cls, path: str) -> "ToolGateConfig":
        """Load from a YAML file. Missing ${VAR} references raise ValueError."""
        try:
            data = _load_config(path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        logger.info(f"Loaded config from {path}")
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "ToolGateConfig":
        """Load from *path*, else $TOOLGATE_CONFIG, else defaults."""
        path = path or os.environ.get(CONFIG_ENV)
        if not path:
            return cls.from_dict({})
        return cls.from_file(path)
