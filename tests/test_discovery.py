import pytest

from webhook_tester.core.errors import FlowApiError
from webhook_tester.models.models import FlowLanding
from webhook_tester.services.discovery import (
    descriptors_from_landings,
    fetch_webhook_metadata,
    get_manual_webhook_ids,
    resolve_descriptors,
)

LANDINGS = [
    {"slug": "avatar", "title": "Avatar", "category": "fun", "type": "image", "flow": {"flowId": "f1"}},
    {"slug": "no-flow", "title": "Draft"},
    {"slug": "empty", "flow": {"flowId": ""}},
    {"slug": "clip", "title": "Clip", "type": "video", "flow": {"flowId": "f2"}},
]


def test_get_manual_webhook_ids():
    assert get_manual_webhook_ids(None) is None
    assert get_manual_webhook_ids("  ") is None
    assert get_manual_webhook_ids(" a, ,b ,") == ["a", "b"]


def test_descriptors_skip_landings_without_flow_id():
    descriptors = descriptors_from_landings(FlowLanding.model_validate(item) for item in LANDINGS)

    assert [d.webhook_id for d in descriptors] == ["f1", "f2"]
    assert descriptors[0].slug == "avatar"
    assert descriptors[0].category == "fun"
    assert descriptors[1].flow_type == "video"


@pytest.mark.asyncio
async def test_api_mode_lists_every_landing(fake_client_factory):
    client = fake_client_factory(landings=LANDINGS)

    descriptors = await resolve_descriptors(client)

    assert [d.display_name for d in descriptors] == ["avatar", "clip"]


@pytest.mark.asyncio
async def test_api_mode_propagates_listing_errors(fake_client_factory):
    client = fake_client_factory(listing_error=FlowApiError("Failed to fetch flow landings: HTTP 503 - x"))

    with pytest.raises(FlowApiError):
        await resolve_descriptors(client, [])


@pytest.mark.asyncio
async def test_manual_mode_keeps_order_and_optionally_enriches(fake_client_factory):
    client = fake_client_factory(landings=LANDINGS)

    plain = await resolve_descriptors(client, ["f2", "unknown", "f1"])
    enriched = await resolve_descriptors(client, ["f2", "unknown", "f1"], enrich=True)

    assert [d.webhook_id for d in plain] == ["f2", "unknown", "f1"]
    assert all(d.slug is None for d in plain)
    assert [d.display_name for d in enriched] == ["clip", "unknown", "avatar"]


@pytest.mark.asyncio
async def test_metadata_lookup_is_best_effort(fake_client_factory):
    client = fake_client_factory(listing_error=FlowApiError("listing down"))

    assert await fetch_webhook_metadata(client, ["f1"]) == {}
    descriptors = await resolve_descriptors(client, ["f1"], enrich=True)
    assert descriptors[0].webhook_id == "f1"
