#!/usr/bin/env python3
"""
Legacy subscription parsing for SubRouter

A legacy subscription is a base64 blob that decodes to one proxy link per
line, ``<scheme>://<payload>[#<percent-encoded-tag>]``. Each non-blank line
becomes a LegacyEntry; lines without a usable tag get ``proxy-<n>`` where
``n`` counts emitted entries starting at 1.
"""

import base64
import binascii
from typing import List, Union
from urllib.parse import unquote

from config import SYNTHETIC_TAG_PREFIX, LEGACY_SEPARATOR
from error_handling import DecodeError
from logger import get_logger
from models import LegacyEntry
from validation import validate_proxy_url, validate_base64

logger = get_logger()

def b64decodes(s: str) -> str:
    """Decode standard or URL-safe base64 text, tolerating missing padding"""
    compact = ''.join(s.split())
    ss = compact + '=' * ((4-len(compact)%4)%4)
    try:
        if '-' in ss or '_' in ss:
            data = base64.b64decode(ss.encode('ascii'), altchars=b'-_', validate=True)
        else:
            data = base64.b64decode(ss.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        raise DecodeError(f"Invalid base64 format: {s[:50]}...")
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        raise DecodeError(f"Unicode decode error in base64: {s[:50]}...")

def decode_payload(raw: Union[bytes, str]) -> str:
    """Decode a raw legacy payload into its link text"""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            raise DecodeError("Legacy subscription is not valid text")
    if not validate_base64(raw):
        raise DecodeError(f"Legacy subscription is not base64: {raw[:50]}...")
    decoded = b64decodes(raw)
    if not decoded.strip():
        raise DecodeError("Legacy subscription decoded to empty content")
    return decoded

def link_tag(link: str) -> str:
    """Percent-decoded text after the last '#' of a link, '' if none

    Line breaks and the cache separator are not kept in tags.
    """
    if '#' not in link:
        return ""
    tag = unquote(link.rsplit('#', 1)[1])
    tag = ' '.join(tag.splitlines()).replace(LEGACY_SEPARATOR, '')
    return tag.strip()

def parse_lines(text: str) -> List[LegacyEntry]:
    """Turn decoded link text into entries, preserving line order"""
    entries = []
    ordinal = 0
    for line in text.split('\n'):
        line = line.strip()
        if not line:
            continue
        ordinal += 1

        issues = validate_proxy_url(line)
        if issues:
            logger.debug(f"Legacy entry {ordinal}: {', '.join(issues)}")

        tag = link_tag(line) or f"{SYNTHETIC_TAG_PREFIX}{ordinal}"
        entries.append(LegacyEntry(link=line, tag=tag, ordinal=ordinal))
    return entries

def parse_legacy(raw: Union[bytes, str]) -> List[LegacyEntry]:
    """Decode and parse a legacy subscription"""
    entries = parse_lines(decode_payload(raw))
    logger.debug(f"Parsed {len(entries)} legacy entries")
    return entries

def dump_entries(entries: List[LegacyEntry]) -> bytes:
    """Serialize entries to the cached ``link|tag`` line format"""
    return ''.join(f"{e.link}{LEGACY_SEPARATOR}{e.tag}\n" for e in entries).encode('utf-8')

def load_entries(data: Union[bytes, str]) -> List[LegacyEntry]:
    """Read entries back from the cached ``link|tag`` line format

    Tags never contain the separator, so the last one on a line splits it.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError:
            raise DecodeError("Cached legacy entries are not valid UTF-8")

    entries = []
    for line in data.split('\n'):
        line = line.rstrip('\r')
        if not line.strip():
            continue
        link, sep, tag = line.rpartition(LEGACY_SEPARATOR)
        if not sep or not link:
            raise DecodeError(f"Malformed cached entry: {line[:50]}...")
        entries.append(LegacyEntry(link=link, tag=tag, ordinal=len(entries) + 1))
    return entries
