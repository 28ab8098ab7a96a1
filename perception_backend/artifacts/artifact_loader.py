"""
Artifact Loader: Reads ARArtifact Definitions from JSON-LD

Sources:
- An HTML Document: every <script type="application/ld+json"> block
- A JSON(-LD) URL: an "artifact sitemap" listing many artifacts

Artifacts may appear at the top level, in arrays, inside "@graph", or
nested in other objects. An arTarget given as an array yields one artifact
per target, all sharing the same content.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union
import logging

import httpx

from .schema import ARArtifact, as_content, type_is_artifact
from ..files.document import Document

logger = logging.getLogger(__name__)

JsonFetcher = Callable[[Union[httpx.URL, str]], Awaitable[Tuple[bool, Optional[Any], Optional[str]]]]


def find_artifact_objects(data: Any) -> List[dict]:
    """Recursively collect every ARArtifact object in decoded JSON-LD."""
    found = []
    if isinstance(data, dict):
        if type_is_artifact(data):
            found.append(data)
            return found
        for value in data.values():
            if isinstance(value, (dict, list)):
                found.extend(find_artifact_objects(value))
    elif isinstance(data, list):
        for item in data:
            found.extend(find_artifact_objects(item))
    return found


def artifacts_from_json_ld(data: Any) -> List[ARArtifact]:
    """Build ARArtifacts from decoded JSON-LD. String content is kept verbatim."""
    artifacts = []
    for obj in find_artifact_objects(data):
        targets = obj.get("arTarget")
        if isinstance(targets, dict):
            targets = [targets]
        if not isinstance(targets, list):
            logger.debug(f"[LOADER] Skipping artifact without arTarget: {str(obj)[:120]}")
            continue

        content = as_content(obj.get("arContent"))

        for target in targets:
            if not isinstance(target, dict):
                continue
            artifacts.append(ARArtifact(target=target, content=content, raw=obj))
    return artifacts


class ArtifactLoader:
    """
    Extracts artifacts from documents and JSON URLs.

    Args:
        fetch_json: Async callable returning (ok, data, error) for a URL
    """

    def __init__(self, fetch_json: JsonFetcher):
        self._fetch_json = fetch_json

    async def from_document(self, doc: Document) -> List[ARArtifact]:
        artifacts = artifacts_from_json_ld(doc.json_ld_blocks())
        logger.info(f"[LOADER] {len(artifacts)} artifact(s) in document {doc.url}")
        return artifacts

    async def from_json_url(self, url: Union[httpx.URL, str]) -> List[ARArtifact]:
        ok, data, error = await self._fetch_json(url)
        if not ok:
            logger.warning(f"[LOADER] Could not load artifacts from {url}: {error}")
            return []
        artifacts = artifacts_from_json_ld(data)
        logger.info(f"[LOADER] {len(artifacts)} artifact(s) from {url}")
        return artifacts
