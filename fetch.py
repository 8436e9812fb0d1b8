#!/usr/bin/env python3
"""
Subscription fetching and format detection for SubRouter

``auto`` subscriptions are requested with the structured client identity
first. A JSON object with an ``outbounds`` list is taken as is; anything
else (failure, empty body, other shape) triggers one more request with the
generic identity whose body is treated as a legacy base64 list.
"""

from typing import NamedTuple, Optional, Union

from config import USER_AGENT_STRUCTURED, USER_AGENT_LINKS
from error_handling import FetchError, DecodeError
from links import parse_legacy, load_entries, dump_entries
from logger import get_logger
from models import DocumentKind, NormalizedDocument, SubscriptionType
from network import RobustSession, sanitize_url
from validation import parse_structured, has_outbounds

logger = get_logger()


class FetchResult(NamedTuple):
    raw: bytes
    kind: DocumentKind


def fetch(url: str, declared_type: Union[str, SubscriptionType, None],
          session: RobustSession, timeout: Optional[float] = None) -> FetchResult:
    """Retrieve a subscription and decide its format"""
    sub_type = SubscriptionType.parse(declared_type)
    safe_url = sanitize_url(url)

    if sub_type == SubscriptionType.STRUCTURED:
        raw = session.fetch_bytes(url, user_agent=USER_AGENT_STRUCTURED, timeout=timeout)
        return FetchResult(raw, DocumentKind.STRUCTURED)

    if sub_type == SubscriptionType.AUTO:
        try:
            raw = session.fetch_bytes(url, user_agent=USER_AGENT_STRUCTURED, timeout=timeout)
        except FetchError as e:
            logger.warning(f"Structured fetch failed for {safe_url}, trying legacy format: {str(e)}")
        else:
            if has_outbounds(parse_structured(raw)):
                logger.debug(f"Subscription {safe_url} detected as structured format")
                return FetchResult(raw, DocumentKind.STRUCTURED)
            logger.debug(f"Subscription {safe_url} has no outbounds, falling back to legacy format")

    raw = session.fetch_bytes(url, user_agent=USER_AGENT_LINKS, timeout=timeout)
    logger.debug(f"Subscription {safe_url} treated as legacy format")
    return FetchResult(raw, DocumentKind.LEGACY)


def normalize(raw: bytes, kind: DocumentKind) -> NormalizedDocument:
    """Parse fetched bytes into a NormalizedDocument of the given kind"""
    if kind == DocumentKind.STRUCTURED:
        document = parse_structured(raw)
        if not has_outbounds(document):
            raise DecodeError("Structured subscription has no outbounds list")
        outbounds = [o for o in document['outbounds'] if isinstance(o, dict)]
        skipped = len(document['outbounds']) - len(outbounds)
        if skipped:
            logger.debug(f"Skipped {skipped} non-object outbound(s)")
        return NormalizedDocument(kind=kind, outbounds=outbounds)

    return NormalizedDocument(kind=DocumentKind.LEGACY, entries=parse_legacy(raw))


def fetch_document(url: str, declared_type: Union[str, SubscriptionType, None],
                   session: RobustSession, timeout: Optional[float] = None) -> NormalizedDocument:
    """Fetch, detect and parse in one step"""
    result = fetch(url, declared_type, session, timeout)
    return normalize(result.raw, result.kind)


def cached_form(document: NormalizedDocument, raw: bytes) -> bytes:
    """What the cache keeps: structured bytes verbatim, legacy as link|tag lines"""
    if document.kind == DocumentKind.STRUCTURED:
        return raw
    return dump_entries(document.entries)


def load_cached(data: bytes) -> NormalizedDocument:
    """Rebuild a document from its cached form"""
    document = parse_structured(data)
    if has_outbounds(document):
        return normalize(data, DocumentKind.STRUCTURED)
    return NormalizedDocument(kind=DocumentKind.LEGACY, entries=load_entries(data))
