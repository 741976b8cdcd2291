"""
Tests for the Klaviyo client and tools

Tests cover:
- Request shape (endpoint, headers, body) per operation
- Lookup-by-email before mutating; no mutation when nothing matches
- Remote errors and missing credentials become error strings
- Read tools run automatically, mutations require confirmation
"""

import json
from types import SimpleNamespace
from typing import Any, Callable, Dict, List

import httpx
import pytest

from toolgate.errors import MissingCredentialsError, NotFoundError, RemoteCallError, SchemaValidationError
from toolgate.integrations.klaviyo import KlaviyoClient, executions, profile_attributes
from toolgate.integrations.klaviyo import tools as klaviyo_tools
from toolgate.tools import SideEffectClass, ToolContext
from toolgate.toolset import default_tools


class FakeKlaviyo:
    """Records requests and answers them from a route table."""

    def __init__(self, routes: Dict[str, Callable[[httpx.Request], httpx.Response]]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(f"{request.method} {request.url.path}")
        if handler is None:
            return httpx.Response(404, json={"errors": [{"detail": "no route"}]})
        return handler(request)

    @property
    def methods(self) -> List[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


def _context(fake: FakeKlaviyo, api_key: str = "pk_test") -> ToolContext:
    client = KlaviyoClient(api_key=api_key, transport=httpx.MockTransport(fake))
    return ToolContext(session=SimpleNamespace(klaviyo=client))


def _body(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)


def _found(profile_id: str):
    return lambda request: httpx.Response(200, json=[{"id": profile_id}])


def _none_found(request):
    return httpx.Response(200, json=[])


# =============================================================================
# Client
# =============================================================================

class TestKlaviyoClient:

    @pytest.mark.asyncio
    async def test_headers(self):
        fake = FakeKlaviyo({"GET /api/v2/lists": lambda r: httpx.Response(200, json={"data": []})})
        client = KlaviyoClient(api_key="pk_test", transport=httpx.MockTransport(fake))

        await client.get_lists()

        headers = fake.requests[0].headers
        assert headers["authorization"] == "Klaviyo-API-Key pk_test"
        assert headers["revision"] == "2025-07-15"
        assert headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_non_success_raises_remote_call_error(self):
        fake = FakeKlaviyo({"GET /api/v2/lists": lambda r: httpx.Response(500, text="upstream down")})
        client = KlaviyoClient(api_key="pk_test", transport=httpx.MockTransport(fake))

        with pytest.raises(RemoteCallError) as exc_info:
            await client.get_lists()
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "upstream down"

    @pytest.mark.asyncio
    async def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("KLAVIYO_API_KEY", raising=False)
        fake = FakeKlaviyo({})
        client = KlaviyoClient(transport=httpx.MockTransport(fake))

        with pytest.raises(MissingCredentialsError):
            await client.get_lists()
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_key_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("KLAVIYO_API_KEY", "pk_env")
        fake = FakeKlaviyo({"GET /api/v2/lists": lambda r: httpx.Response(200, json=[])})
        client = KlaviyoClient(transport=httpx.MockTransport(fake))

        await client.get_lists()
        assert fake.requests[0].headers["authorization"] == "Klaviyo-API-Key pk_env"

    @pytest.mark.asyncio
    async def test_find_profile_id_accepts_jsonapi_payload(self):
        fake = FakeKlaviyo({
            "GET /api/v2/people/search": lambda r: httpx.Response(200, json={"data": [{"id": "P9"}]}),
        })
        client = KlaviyoClient(api_key="pk_test", transport=httpx.MockTransport(fake))
        assert await client.find_profile_id("a@b.co") == "P9"

    @pytest.mark.asyncio
    async def test_find_profile_id_not_found(self):
        fake = FakeKlaviyo({"GET /api/v2/people/search": _none_found})
        client = KlaviyoClient(api_key="pk_test", transport=httpx.MockTransport(fake))
        with pytest.raises(NotFoundError):
            await client.find_profile_id("a@b.co")

    def test_profile_attributes_mapping(self):
        attrs = profile_attributes({
            "firstName": "Ada",
            "lastName": "",
            "phoneNumber": "+15550100",
            "customProperties": {"vip": True},
        })
        assert attrs == {"first_name": "Ada", "phone_number": "+15550100", "$extra": {"vip": True}}


# =============================================================================
# Read tools
# =============================================================================

class TestReadTools:

    @pytest.mark.asyncio
    async def test_get_profile(self):
        fake = FakeKlaviyo({"GET /api/v2/people/search": _found("P1")})
        result = await klaviyo_tools.get_klaviyo_profile.executor({"email": "a@b.co"}, _context(fake))

        assert result == [{"id": "P1"}]
        assert fake.requests[0].url.params["email"] == "a@b.co"

    @pytest.mark.asyncio
    async def test_get_campaigns_default_limit(self):
        fake = FakeKlaviyo({"GET /api/v2/campaigns": lambda r: httpx.Response(200, json={"data": []})})
        await klaviyo_tools.get_klaviyo_campaigns.executor({}, _context(fake))
        assert fake.requests[0].url.params["count"] == "50"

    @pytest.mark.asyncio
    async def test_get_single_metric_with_range(self):
        fake = FakeKlaviyo({"GET /api/v2/metric/M1": lambda r: httpx.Response(200, json={"id": "M1"})})
        result = await klaviyo_tools.get_klaviyo_metrics.executor(
            {"metricId": "M1", "since": "2030-01-01"}, _context(fake),
        )
        assert result == {"id": "M1"}
        params = fake.requests[0].url.params
        assert params["since"] == "2030-01-01"
        assert "until" not in params

    @pytest.mark.asyncio
    async def test_remote_error_becomes_message(self):
        fake = FakeKlaviyo({"GET /api/v2/lists": lambda r: httpx.Response(401, text="bad key")})
        result = await klaviyo_tools.get_klaviyo_lists.executor({}, _context(fake))
        assert result.startswith("Error getting lists: API error: 401")
        assert "bad key" in result

    @pytest.mark.asyncio
    async def test_missing_key_fails_only_that_call(self, monkeypatch):
        monkeypatch.delenv("KLAVIYO_API_KEY", raising=False)
        fake = FakeKlaviyo({})
        context = ToolContext(session=SimpleNamespace(
            klaviyo=KlaviyoClient(transport=httpx.MockTransport(fake)),
        ))

        result = await klaviyo_tools.get_klaviyo_lists.executor({}, context)
        assert result == "Error getting lists: KLAVIYO_API_KEY environment variable is not set"
        assert fake.requests == []


# =============================================================================
# Mutating tools
# =============================================================================

class TestMutatingTools:

    @pytest.mark.asyncio
    async def test_create_profile(self):
        fake = FakeKlaviyo({"POST /api/profiles/": lambda r: httpx.Response(201, json={"data": {"id": "P7"}})})
        result = await executions.get("createKlaviyoProfile")(
            {"email": "a@b.co", "firstName": "Ada", "customProperties": {"plan": "pro"}},
            _context(fake),
        )

        assert result == "Profile created successfully for a@b.co. Profile ID: P7"
        body = _body(fake.requests[0])
        assert body == {
            "data": {
                "type": "profile",
                "attributes": {"email": "a@b.co", "first_name": "Ada", "$extra": {"plan": "pro"}},
            }
        }

    @pytest.mark.asyncio
    async def test_update_profile_resolves_id_first(self):
        fake = FakeKlaviyo({
            "GET /api/v2/people/search": _found("P1"),
            "PATCH /api/profiles/P1/": lambda r: httpx.Response(200, json={"data": {"id": "P1"}}),
        })
        result = await executions.get("updateKlaviyoProfile")(
            {"email": "a@b.co", "city": "Oslo"}, _context(fake),
        )

        assert result == "Profile updated successfully for a@b.co"
        assert fake.methods == ["GET /api/v2/people/search", "PATCH /api/profiles/P1/"]
        assert _body(fake.requests[1]) == {
            "data": {"type": "profile", "id": "P1", "attributes": {"city": "Oslo"}},
        }

    @pytest.mark.asyncio
    async def test_update_profile_not_found_issues_no_mutation(self):
        fake = FakeKlaviyo({"GET /api/v2/people/search": _none_found})
        result = await executions.get("updateKlaviyoProfile")(
            {"email": "ghost@b.co", "city": "Oslo"}, _context(fake),
        )

        assert result == "Error updating profile: Profile not found for email: ghost@b.co"
        assert fake.methods == ["GET /api/v2/people/search"]

    @pytest.mark.asyncio
    async def test_add_to_list(self):
        fake = FakeKlaviyo({
            "GET /api/v2/people/search": _found("P1"),
            "POST /api/lists/L1/subscriptions/": lambda r: httpx.Response(202),
        })
        result = await executions.get("addProfileToList")({"email": "a@b.co", "listId": "L1"}, _context(fake))

        assert result == "Profile a@b.co added to list L1 successfully"
        assert _body(fake.requests[1])["data"]["attributes"] == {"profile_id": "P1", "custom_source": "API"}

    @pytest.mark.asyncio
    async def test_add_to_list_not_found(self):
        fake = FakeKlaviyo({"GET /api/v2/people/search": _none_found})
        result = await executions.get("addProfileToList")({"email": "x@b.co", "listId": "L1"}, _context(fake))

        assert result.startswith("Error adding profile to list: Profile not found")
        assert len(fake.requests) == 1

    @pytest.mark.asyncio
    async def test_remove_from_list(self):
        fake = FakeKlaviyo({
            "GET /api/v2/people/search": _found("P1"),
            "DELETE /api/lists/L1/subscriptions/P1/": lambda r: httpx.Response(204),
        })
        result = await executions.get("removeProfileFromList")({"email": "a@b.co", "listId": "L1"}, _context(fake))
        assert result == "Profile a@b.co removed from list L1 successfully"

    @pytest.mark.asyncio
    async def test_create_list(self):
        fake = FakeKlaviyo({"POST /api/lists/": lambda r: httpx.Response(201, json={"data": {"id": "L5"}})})
        result = await executions.get("createKlaviyoList")({"name": "VIP"}, _context(fake))

        assert result == "List created successfully: VIP. List ID: L5"
        assert _body(fake.requests[0]) == {"data": {"type": "list", "attributes": {"name": "VIP"}}}

    @pytest.mark.asyncio
    async def test_send_campaign_error(self):
        fake = FakeKlaviyo({"POST /api/v2/campaign/C1/send": lambda r: httpx.Response(400, text="not ready")})
        result = await executions.get("sendKlaviyoCampaign")({"campaignId": "C1"}, _context(fake))
        assert result.startswith("Error sending campaign: API error: 400 Bad Request")


# =============================================================================
# Classification and validation
# =============================================================================

class TestKlaviyoCatalog:

    def test_reads_are_auto_and_writes_need_confirmation(self):
        registry, table = default_tools()
        for name in ("getKlaviyoProfile", "getKlaviyoLists", "getKlaviyoCampaigns", "getKlaviyoMetrics"):
            assert registry.classify(name) == SideEffectClass.AUTO
        for name in (
            "createKlaviyoProfile", "updateKlaviyoProfile", "createKlaviyoList",
            "addProfileToList", "removeProfileFromList", "sendKlaviyoCampaign",
        ):
            assert registry.classify(name) == SideEffectClass.REQUIRES_CONFIRMATION
            assert name in table

    def test_email_validated(self):
        registry, _ = default_tools()
        with pytest.raises(SchemaValidationError) as exc_info:
            registry.validate("getKlaviyoProfile", {"email": "not-an-email"})
        assert exc_info.value.field_path == "email"
