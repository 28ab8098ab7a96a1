"""
Enrichment: Fill In Partial Content with Page Metadata

For every found result, in order:
- RawContent (a string): if it resolves to page metadata, the metadata
  replaces the string entirely.
- StructuredContent with a "url" but no "name": if the page metadata has
  exactly the same "@type", the two are merged. Values already on the
  content always win; metadata only contributes missing keys.
- Anything else is left alone.

Results are processed one at a time so output order matches input order.
"""

from __future__ import annotations

from typing import List
import logging

from .artifacts.schema import NearbyResult, RawContent, StructuredContent
from .fetch_policy import FetchPolicy
from .page_metadata_cache import PageMetadataResolver

logger = logging.getLogger(__name__)


def merge_thing(original: dict, metadata: dict) -> dict:
    """New dict of `metadata` overlaid with every key of `original`."""
    merged = dict(metadata)
    merged.update(original)
    return merged


async def enrich_result(result: NearbyResult, policy: FetchPolicy, resolver: PageMetadataResolver) -> None:
    """Enrich a single result's content in place."""
    content = result.content

    if isinstance(content, RawContent):
        metadata = await resolver.resolve_metadata(content.value, policy)
        if metadata is not None:
            result.content = StructuredContent(dict(metadata))
            logger.debug(f"[ENRICH] Replaced URL content {content.value}")
        return

    if isinstance(content, StructuredContent):
        thing = content.thing
        if not thing.get("url") or "name" in thing:
            return
        metadata = await resolver.resolve_metadata(thing["url"], policy)
        if metadata is None:
            return
        if metadata.get("@type") != thing.get("@type"):
            logger.debug(
                f"[ENRICH] Type mismatch for {thing['url']}: "
                f"{metadata.get('@type')!r} != {thing.get('@type')!r}"
            )
            return
        result.content = StructuredContent(merge_thing(thing, metadata))
        logger.debug(f"[ENRICH] Merged metadata into {thing.get('@type')} {thing['url']}")


async def enrich_results(
    results: List[NearbyResult],
    policy: FetchPolicy,
    resolver: PageMetadataResolver,
) -> List[NearbyResult]:
    """
    Enrich every result's content with page metadata where possible.

    Returns:
        The same list, mutated in place
    """
    for result in results:
        await enrich_result(result, policy, resolver)
    return results
