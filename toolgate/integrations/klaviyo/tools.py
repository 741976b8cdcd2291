"""Klaviyo Tools - customer profile, list, campaign and metric operations.

Reads run automatically. Anything that creates, mutates or sends is
declared on ``executions`` and only runs after a human approves the call.
Every tool returns either the API payload or a readable error string.
"""

import logging
from typing import Annotated, Any, Dict, Optional

import httpx
from pydantic import StringConstraints

from ...errors import IntegrationError
from ...tools.decorator import tool
from ...tools.models import ToolContext
from ...tools.registry import ExecutorTable
from .client import KlaviyoClient, profile_attributes

logger = logging.getLogger(__name__)

Email = Annotated[str, StringConstraints(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]

executions = ExecutorTable()

# Failures reported back to the model as text
_CALL_ERRORS = (IntegrationError, httpx.HTTPError)


def _get_client(context: ToolContext) -> KlaviyoClient:
    """Session-configured client, or a default one reading KLAVIYO_API_KEY."""
    client = getattr(context.session, "klaviyo", None)
    return client if client is not None else KlaviyoClient()


def _profile_fields(**fields: Any) -> Dict[str, Any]:
    return profile_attributes(fields)


# =============================================================================
# Reads (auto)
# =============================================================================

@tool(name="getKlaviyoProfile")
async def get_klaviyo_profile(
    email: Annotated[Email, "Customer email address to look up"],
    *, context: ToolContext,
) -> Any:
    """Get a customer profile from Klaviyo by email address"""
    try:
        return await _get_client(context).search_profile(email)
    except _CALL_ERRORS as e:
        logger.error(f"Error getting Klaviyo profile: {e}")
        return f"Error getting profile: {e}"


@tool(name="getKlaviyoLists")
async def get_klaviyo_lists(*, context: ToolContext) -> Any:
    """Get all lists from Klaviyo account"""
    try:
        return await _get_client(context).get_lists()
    except _CALL_ERRORS as e:
        logger.error(f"Error getting Klaviyo lists: {e}")
        return f"Error getting lists: {e}"


@tool(name="getKlaviyoCampaigns")
async def get_klaviyo_campaigns(
    limit: Annotated[Optional[int], "Number of campaigns to return (default: 50)"] = 50,
    *, context: ToolContext,
) -> Any:
    """Get all campaigns from Klaviyo account"""
    try:
        return await _get_client(context).get_campaigns(limit=limit or 50)
    except _CALL_ERRORS as e:
        logger.error(f"Error getting Klaviyo campaigns: {e}")
        return f"Error getting campaigns: {e}"


@tool(name="getKlaviyoMetrics")
async def get_klaviyo_metrics(
    metricId: Annotated[Optional[str], "Specific metric ID to retrieve"] = None,
    since: Annotated[Optional[str], "Start date for metrics (ISO 8601 format)"] = None,
    until: Annotated[Optional[str], "End date for metrics (ISO 8601 format)"] = None,
    *, context: ToolContext,
) -> Any:
    """Get metrics from Klaviyo account"""
    try:
        return await _get_client(context).get_metrics(metric_id=metricId, since=since, until=until)
    except _CALL_ERRORS as e:
        logger.error(f"Error getting Klaviyo metrics: {e}")
        return f"Error getting metrics: {e}"


# =============================================================================
# Profile mutations (confirmation required)
# =============================================================================

@executions.tool(name="createKlaviyoProfile")
async def create_klaviyo_profile(
    email: Annotated[Email, "Customer email address"],
    firstName: Annotated[Optional[str], "Customer first name"] = None,
    lastName: Annotated[Optional[str], "Customer last name"] = None,
    phoneNumber: Annotated[Optional[str], "Customer phone number"] = None,
    address1: Annotated[Optional[str], "Customer address line 1"] = None,
    address2: Annotated[Optional[str], "Customer address line 2"] = None,
    city: Annotated[Optional[str], "Customer city"] = None,
    region: Annotated[Optional[str], "Customer state/region"] = None,
    country: Annotated[Optional[str], "Customer country"] = None,
    zip: Annotated[Optional[str], "Customer zip/postal code"] = None,
    organization: Annotated[Optional[str], "Customer organization"] = None,
    title: Annotated[Optional[str], "Customer job title"] = None,
    image: Annotated[Optional[str], "Customer profile image URL"] = None,
    customProperties: Annotated[Optional[Dict[str, Any]], "Custom properties for the profile"] = None,
    *, context: ToolContext,
) -> str:
    """Create a new customer profile in Klaviyo"""
    attributes = _profile_fields(
        firstName=firstName, lastName=lastName, phoneNumber=phoneNumber,
        address1=address1, address2=address2, city=city, region=region,
        country=country, zip=zip, organization=organization, title=title,
        image=image, customProperties=customProperties,
    )
    try:
        data = await _get_client(context).create_profile(email, attributes)
    except _CALL_ERRORS as e:
        logger.error(f"Error creating Klaviyo profile: {e}")
        return f"Error creating profile: {e}"
    profile_id = data.get("data", {}).get("id", "unknown")
    return f"Profile created successfully for {email}. Profile ID: {profile_id}"


@executions.tool(name="updateKlaviyoProfile")
async def update_klaviyo_profile(
    email: Annotated[Email, "Customer email address to update"],
    firstName: Annotated[Optional[str], "Customer first name"] = None,
    lastName: Annotated[Optional[str], "Customer last name"] = None,
    phoneNumber: Annotated[Optional[str], "Customer phone number"] = None,
    address1: Annotated[Optional[str], "Customer address line 1"] = None,
    address2: Annotated[Optional[str], "Customer address line 2"] = None,
    city: Annotated[Optional[str], "Customer city"] = None,
    region: Annotated[Optional[str], "Customer state/region"] = None,
    country: Annotated[Optional[str], "Customer country"] = None,
    zip: Annotated[Optional[str], "Customer zip/postal code"] = None,
    organization: Annotated[Optional[str], "Customer organization"] = None,
    title: Annotated[Optional[str], "Customer job title"] = None,
    image: Annotated[Optional[str], "Customer profile image URL"] = None,
    customProperties: Annotated[Optional[Dict[str, Any]], "Custom properties for the profile"] = None,
    *, context: ToolContext,
) -> str:
    """Update an existing customer profile in Klaviyo"""
    client = _get_client(context)
    attributes = _profile_fields(
        firstName=firstName, lastName=lastName, phoneNumber=phoneNumber,
        address1=address1, address2=address2, city=city, region=region,
        country=country, zip=zip, organization=organization, title=title,
        image=image, customProperties=customProperties,
    )
    try:
        profile_id = await client.find_profile_id(email)
        await client.update_profile(profile_id, attributes)
    except _CALL_ERRORS as e:
        logger.error(f"Error updating Klaviyo profile: {e}")
        return f"Error updating profile: {e}"
    return f"Profile updated successfully for {email}"


# =============================================================================
# Lists (confirmation required)
# =============================================================================

@executions.tool(name="createKlaviyoList")
async def create_klaviyo_list(
    name: Annotated[str, "Name of the list to create"],
    description: Annotated[Optional[str], "Description of the list"] = None,
    *, context: ToolContext,
) -> str:
    """Create a new list in Klaviyo"""
    try:
        data = await _get_client(context).create_list(name, description)
    except _CALL_ERRORS as e:
        logger.error(f"Error creating Klaviyo list: {e}")
        return f"Error creating list: {e}"
    list_id = data.get("data", {}).get("id", "unknown")
    return f"List created successfully: {name}. List ID: {list_id}"


@executions.tool(name="addProfileToList")
async def add_profile_to_list(
    email: Annotated[Email, "Customer email address to add to list"],
    listId: Annotated[str, "ID of the list to add the profile to"],
    *, context: ToolContext,
) -> str:
    """Add a customer profile to a specific list in Klaviyo"""
    client = _get_client(context)
    try:
        profile_id = await client.find_profile_id(email)
        await client.add_to_list(listId, profile_id)
    except _CALL_ERRORS as e:
        logger.error(f"Error adding profile to list: {e}")
        return f"Error adding profile to list: {e}"
    return f"Profile {email} added to list {listId} successfully"


@executions.tool(name="removeProfileFromList")
async def remove_profile_from_list(
    email: Annotated[Email, "Customer email address to remove from list"],
    listId: Annotated[str, "ID of the list to remove the profile from"],
    *, context: ToolContext,
) -> str:
    """Remove a customer profile from a specific list in Klaviyo"""
    client = _get_client(context)
    try:
        profile_id = await client.find_profile_id(email)
        await client.remove_from_list(listId, profile_id)
    except _CALL_ERRORS as e:
        logger.error(f"Error removing profile from list: {e}")
        return f"Error removing profile from list: {e}"
    return f"Profile {email} removed from list {listId} successfully"


# =============================================================================
# Campaigns (confirmation required)
# =============================================================================

@executions.tool(name="sendKlaviyoCampaign")
async def send_klaviyo_campaign(
    campaignId: Annotated[str, "ID of the campaign to send"],
    *, context: ToolContext,
) -> str:
    """Send a campaign in Klaviyo"""
    try:
        await _get_client(context).send_campaign(campaignId)
    except _CALL_ERRORS as e:
        logger.error(f"Error sending Klaviyo campaign: {e}")
        return f"Error sending campaign: {e}"
    return f"Campaign {campaignId} sent successfully"


KLAVIYO_TOOLS = [
    create_klaviyo_profile,
    get_klaviyo_profile,
    update_klaviyo_profile,
    get_klaviyo_lists,
    create_klaviyo_list,
    add_profile_to_list,
    remove_profile_from_list,
    get_klaviyo_campaigns,
    send_klaviyo_campaign,
    get_klaviyo_metrics,
]
