"""toolgate HTTP surface for confirmations and schedules."""

from .app import create_app, verify_api_key

__all__ = ["create_app", "verify_api_key"]
