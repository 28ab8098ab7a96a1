"""
Page Metadata Extraction

Derives a single Thing describing a fetched page. Used to fill in content
records that only carry a URL.

Order of preference:
1. A top-level JSON-LD Thing whose "url" is the page URL
2. The first top-level JSON-LD Thing that is not an ARArtifact
3. A WebPage built from <meta property="og:*">, <title>, <meta name="description">

The result always carries "@type" and "url". Extraction never raises.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Union
from urllib.parse import urljoin
import logging

import httpx

from .schema import Thing, type_is_artifact, type_is_thing
from ..files.document import Document

logger = logging.getLogger(__name__)


def _top_level_things(blocks: List[Any]) -> Iterator[Thing]:
    for block in blocks:
        if isinstance(block, list):
            items = block
        elif isinstance(block, dict) and isinstance(block.get("@graph"), list):
            items = block["@graph"]
        else:
            items = [block]
        for item in items:
            if type_is_thing(item) and not type_is_artifact(item):
                yield item


def _same_page(candidate: Any, page_url: str) -> bool:
    if not isinstance(candidate, str):
        return False
    return urljoin(page_url, candidate).rstrip("/") == page_url.rstrip("/")


def _metadata_from_json_ld(doc: Document, page_url: str) -> Optional[Thing]:
    things = list(_top_level_things(doc.json_ld_blocks()))
    if not things:
        return None
    for thing in things:
        if _same_page(thing.get("url"), page_url):
            return dict(thing)
    return dict(things[0])


def _metadata_from_meta_tags(doc: Document, page_url: str) -> Thing:
    metadata: Thing = {"@type": "WebPage"}

    name = doc.meta_content(prop="og:title") or doc.title
    if name:
        metadata["name"] = name

    description = doc.meta_content(prop="og:description") or doc.meta_content(name="description")
    if description:
        metadata["description"] = description

    image = doc.meta_content(prop="og:image")
    if image:
        metadata["image"] = urljoin(page_url, image)

    canonical = doc.canonical_url or doc.meta_content(prop="og:url")
    metadata["url"] = urljoin(page_url, canonical) if canonical else page_url
    return metadata


def extract_page_metadata(doc: Document, url: Union[httpx.URL, str]) -> Thing:
    """
    Extract a Thing describing `doc`, which was fetched from `url`.

    Args:
        doc: Parsed document
        url: URL the document was requested from

    Returns:
        Thing with at least "@type" and "url"
    """
    page_url = str(url)
    try:
        metadata = _metadata_from_json_ld(doc, page_url)
        if metadata is not None:
            metadata.setdefault("url", page_url)
            logger.debug(f"[META] JSON-LD {metadata.get('@type')} for {page_url}")
            return metadata
        metadata = _metadata_from_meta_tags(doc, page_url)
    except Exception as e:
        logger.warning(f"[META] Extraction failed for {page_url}, using bare WebPage: {e}")
        return {"@type": "WebPage", "url": page_url}

    logger.debug(f"[META] Meta-tag WebPage for {page_url}")
    return metadata
