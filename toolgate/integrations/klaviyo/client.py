"""
Klaviyo API Client - REST wrapper used by the Klaviyo tools.

Requires the KLAVIYO_API_KEY environment variable (private API key),
read on every request so a missing key only fails the call that needs it.
"""

import logging
import os
from typing import Any, Dict, Optional

import httpx

from ...errors import MissingCredentialsError, NotFoundError, RemoteCallError

logger = logging.getLogger(__name__)

API_KEY_ENV = "KLAVIYO_API_KEY"
KLAVIYO_REVISION = "2025-07-15"
BASE_URL = "https://a.klaviyo.com/api"

# camelCase tool argument -> Klaviyo profile attribute
PROFILE_ATTRIBUTES = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phoneNumber": "phone_number",
    "address1": "address1",
    "address2": "address2",
    "city": "city",
    "region": "region",
    "country": "country",
    "zip": "zip",
    "organization": "organization",
    "title": "title",
    "image": "image",
}


def profile_attributes(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Map profile tool fields to Klaviyo attributes, dropping empty values.

    ``customProperties`` is sent under ``$extra``.
    """
    attributes: Dict[str, Any] = {}
    for arg_name, attr_name in PROFILE_ATTRIBUTES.items():
        value = fields.get(arg_name)
        if value:
            attributes[attr_name] = value
    if fields.get("customProperties"):
        attributes["$extra"] = fields["customProperties"]
    return attributes


class KlaviyoClient:
    """Async Klaviyo REST API client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        revision: str = KLAVIYO_REVISION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.revision = revision
        self._transport = transport
        self._timeout = timeout

    @property
    def api_key(self) -> str:
        key = self._api_key or os.getenv(API_KEY_ENV, "")
        if not key:
            raise MissingCredentialsError(API_KEY_ENV)
        return key

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Klaviyo-API-Key {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Revision": self.revision,
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = self._headers
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            resp = await client.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                params=params,
                json=json,
            )

        if resp.is_error:
            logger.error(f"Klaviyo API error on {method} {path}: {resp.status_code} {resp.text}")
            raise RemoteCallError(resp.status_code, resp.text, resp.reason_phrase)
        if not resp.content:
            return {}
        return resp.json()

    # ── Profiles ──

    async def search_profile(self, email: str) -> Any:
        """Look up profiles by email. Returns the raw API payload."""
        return await self._request("GET", "/v2/people/search", params={"email": email})

    async def find_profile_id(self, email: str) -> str:
        """Resolve a profile id from an email address.

        Raises:
            NotFoundError: no profile matches *email*
        """
        data = await self.search_profile(email)
        if isinstance(data, dict):
            matches = data.get("data") or []
        else:
            matches = data or []
        if not matches:
            raise NotFoundError(f"Profile not found for email: {email}")
        return matches[0]["id"]

    async def create_profile(self, email: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        body = {
            "data": {
                "type": "profile",
                "attributes": {"email": email, **attributes},
            }
        }
        return await self._request("POST", "/profiles/", json=body)

    async def update_profile(self, profile_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        body = {
            "data": {
                "type": "profile",
                "id": profile_id,
                "attributes": attributes,
            }
        }
        return await self._request("PATCH", f"/profiles/{profile_id}/", json=body)

    # ── Lists ──

    async def get_lists(self) -> Any:
        return await self._request("GET", "/v2/lists")

    async def create_list(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {"name": name}
        if description:
            attributes["description"] = description
        body = {"data": {"type": "list", "attributes": attributes}}
        return await self._request("POST", "/lists/", json=body)

    async def add_to_list(self, list_id: str, profile_id: str) -> Dict[str, Any]:
        body = {
            "data": {
                "type": "subscription",
                "attributes": {
                    "profile_id": profile_id,
                    "custom_source": "API",
                },
            }
        }
        return await self._request("POST", f"/lists/{list_id}/subscriptions/", json=body)

    async def remove_from_list(self, list_id: str, profile_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/lists/{list_id}/subscriptions/{profile_id}/")

    # ── Campaigns ──

    async def get_campaigns(self, limit: int = 50) -> Any:
        return await self._request("GET", "/v2/campaigns", params={"count": limit})

    async def send_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/v2/campaign/{campaign_id}/send")

    # ── Metrics ──

    async def get_metrics(
        self,
        metric_id: Optional[str] = None,
        since: Optional[str] = None,
        until: Optional[str] = None,
    ) -> Any:
        """
        Get all metrics, or a single metric when *metric_id* is given.

        Args:
            metric_id: Specific metric to retrieve.
            since: Start date (ISO 8601).
            until: End date (ISO 8601).
        """
        path = f"/v2/metric/{metric_id}" if metric_id else "/v2/metrics"
        params: Dict[str, Any] = {}
        if since:
            params["since"] = since
        if until:
            params["until"] = until
        return await self._request("GET", path, params=params or None)
