"""Klaviyo integration - REST client and the tools built on it."""

from .client import KlaviyoClient, profile_attributes
from .tools import KLAVIYO_TOOLS, executions

__all__ = ["KLAVIYO_TOOLS", "KlaviyoClient", "executions", "profile_attributes"]
