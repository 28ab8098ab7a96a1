"""
Fetch Policy: Which URLs May Be Actively Retrieved

A recognized value (QR code text, OCR-ed string, artifact content) is only
fetched when it parses as an absolute URL *and* the active FetchPolicy
allows it.

Policies are resolved once at the public call boundary from one of:
- None: allow only the origin this service runs under
- a list of origin strings: allow exact origin membership
- a callable taking an httpx.URL: used as the decision function
- a FetchPolicy: used as-is
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Union
import logging

import httpx

logger = logging.getLogger(__name__)

# Schemes whose URLs have a (scheme, host, port) origin
TUPLE_ORIGIN_SCHEMES = {"http", "https", "ws", "wss", "ftp"}

UrlPredicate = Callable[[httpx.URL], bool]


def url_origin(url: httpx.URL) -> str:
    """
    Serialized origin of `url`, e.g. "https://example.com" or "http://localhost:8000".

    Default ports are omitted and the host is in its ASCII (IDNA) form.
    URLs without a tuple origin serialize to "null".
    """
    if url.scheme not in TUPLE_ORIGIN_SCHEMES or not url.raw_host:
        return "null"
    host = url.raw_host.decode("ascii")
    if ":" in host:
        host = f"[{host}]"
    if url.port is not None:
        return f"{url.scheme}://{host}:{url.port}"
    return f"{url.scheme}://{host}"


class FetchPolicy:
    """
    Decides whether a parsed URL may be fetched.

    Build one with from_predicate(), from_origin_list() or same_origin().
    """

    def __init__(self, predicate: UrlPredicate, description: str = "custom"):
        self._predicate = predicate
        self.description = description

    def allows(self, url: httpx.URL) -> bool:
        return bool(self._predicate(url))

    @staticmethod
    def from_predicate(predicate: UrlPredicate) -> "FetchPolicy":
        return FetchPolicy(predicate, description="predicate")

    @staticmethod
    def from_origin_list(origins: Iterable[str]) -> "FetchPolicy":
        allowed = frozenset(origins)
        return FetchPolicy(
            lambda url: url_origin(url) in allowed,
            description=f"origins={sorted(allowed)}",
        )

    @staticmethod
    def same_origin(origin: Optional[str]) -> "FetchPolicy":
        """Allow only `origin`. With no origin configured nothing is allowed."""
        if not origin:
            return FetchPolicy(lambda url: False, description="deny-all")
        parsed = parse_absolute_url(origin)
        if parsed is not None:
            origin = url_origin(parsed)
        if origin == "null":
            return FetchPolicy(lambda url: False, description="deny-all")
        return FetchPolicy(lambda url: url_origin(url) == origin, description=f"same-origin={origin}")

    def __repr__(self) -> str:
        return f"FetchPolicy({self.description})"


PolicyLike = Union[FetchPolicy, UrlPredicate, Iterable[str], None]


def normalize_policy(policy: PolicyLike, default_origin: Optional[str] = None) -> FetchPolicy:
    """Resolve any accepted policy form into a FetchPolicy."""
    if policy is None:
        return FetchPolicy.same_origin(default_origin)
    if isinstance(policy, FetchPolicy):
        return policy
    if callable(policy):
        return FetchPolicy.from_predicate(policy)
    if isinstance(policy, str):
        # A lone origin string, not an iterable of characters
        return FetchPolicy.from_origin_list([policy])
    return FetchPolicy.from_origin_list(policy)


def parse_absolute_url(candidate: object) -> Optional[httpx.URL]:
    """
    Parse `candidate` as an absolute URL, without any base.

    Any URL with a scheme is accepted, host or not (mailto:, urn:, data:,
    file:), and left to the policy. Relative references are rejected rather
    than resolved, so ordinary strings like "not a url" are never mistaken
    for paths.
    """
    if not isinstance(candidate, str) or not candidate.strip():
        return None
    try:
        url = httpx.URL(candidate.strip())
    except httpx.InvalidURL:
        return None
    if not url.scheme:
        return None
    return url


def check_is_fetchable_url(candidate: object, policy: FetchPolicy) -> Optional[httpx.URL]:
    """
    Return the parsed URL if `candidate` is an absolute URL the policy allows, else None.

    Never raises and has no side effects.
    """
    url = parse_absolute_url(candidate)
    if url is None:
        return None
    try:
        allowed = policy.allows(url)
    except Exception as e:
        logger.warning(f"[POLICY] {policy!r} raised for {url}, treating as denied: {e}")
        return None
    if allowed:
        return url
    logger.debug(f"[POLICY] Denied by {policy!r}: {url}")
    return None
