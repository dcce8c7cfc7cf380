# webhook_tester/services/discovery.py
"""
Task list resolution.

Manual mode tests an explicit list of webhook ids; API mode tests every
landing of the flow-landings listing that carries a flow id.
"""

from typing import Dict, Iterable, List, Optional

from webhook_tester.clients.flow_api import FlowApiClient
from webhook_tester.core.errors import FlowApiError
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import FlowLanding, TaskDescriptor

logger = setup_default_logging()


def get_manual_webhook_ids(raw: Optional[str]) -> Optional[List[str]]:
    """
    Parse a comma-separated list of webhook ids.

    Returns:
        Optional[List[str]]: Trimmed non-empty ids, or None when nothing is set
    """
    if raw is None or not raw.strip():
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


def _descriptor_from_landing(landing: FlowLanding) -> TaskDescriptor:
    return TaskDescriptor(
        webhook_id=landing.flow.flow_id,
        slug=landing.slug,
        title=landing.title,
        category=landing.category,
        flow_type=landing.type,
    )


def descriptors_from_landings(landings: Iterable[FlowLanding]) -> List[TaskDescriptor]:
    """Keep the landings carrying a flow id, in listing order."""
    return [
        _descriptor_from_landing(landing)
        for landing in landings
        if landing.flow is not None and landing.flow.flow_id
    ]


async def fetch_webhook_metadata(
    client: FlowApiClient, webhook_ids: List[str], page_size: int = 100
) -> Dict[str, TaskDescriptor]:
    """
    Look up listing metadata (slug, title...) for explicit webhook ids.

    Best effort: a listing failure is logged and yields an empty mapping, the
    webhooks are then displayed by id only.
    """
    wanted = set(webhook_ids)
    try:
        landings = await client.fetch_all_landings(page_size=page_size)
    except FlowApiError as e:
        logger.warning(f"Failed to fetch webhook metadata: {e}")
        return {}

    return {
        descriptor.webhook_id: descriptor
        for descriptor in descriptors_from_landings(landings)
        if descriptor.webhook_id in wanted
    }


async def resolve_descriptors(
    client: FlowApiClient,
    webhook_ids: Optional[List[str]] = None,
    enrich: bool = False,
    page_size: int = 100,
) -> List[TaskDescriptor]:
    """
    Build the list of webhooks to test.

    Args:
        client: Flow API client
        webhook_ids: Explicit ids (manual mode); None or empty lists every landing
        enrich: In manual mode, fill slug/title from the listing when available
        page_size: Listing page size

    Returns:
        List[TaskDescriptor]: Webhooks in admission order

    Raises:
        FlowApiError: If the listing cannot be fetched in API mode
    """
    if webhook_ids:
        logger.info(f"Manual mode: {len(webhook_ids)} webhook id(s)")
        metadata = (
            await fetch_webhook_metadata(client, webhook_ids, page_size=page_size)
            if enrich
            else {}
        )
        return [
            metadata.get(webhook_id) or TaskDescriptor(webhook_id=webhook_id)
            for webhook_id in webhook_ids
        ]

    logger.info("API mode: fetching all flow landings")
    landings = await client.fetch_all_landings(page_size=page_size)
    descriptors = descriptors_from_landings(landings)
    logger.info(f"Found {len(descriptors)} webhook(s) in {len(landings)} flow landing(s)")
    return descriptors
