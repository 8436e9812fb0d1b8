#!/usr/bin/env python3
"""
Validation utilities for SubRouter
Checks on subscription URLs, proxy links and structured documents
"""

import json
import base64
import binascii
from typing import Dict, Any, List, Optional, Union
from urllib.parse import urlparse

from logger import get_logger

logger = get_logger()

KNOWN_SCHEMES = ['vmess', 'vless', 'trojan', 'ss', 'ssr', 'hysteria', 'hysteria2', 'hy2', 'tuic', 'socks', 'http', 'https']

def validate_url(url: str) -> List[str]:
    """Validate subscription URL format and structure"""
    issues = []

    if not url:
        issues.append("Empty URL")
        return issues

    try:
        parsed = urlparse(url)

        if not parsed.scheme:
            issues.append("URL missing scheme")
        elif parsed.scheme not in ['http', 'https', 'file']:
            issues.append(f"Unsupported URL scheme: {parsed.scheme}")

        if not parsed.netloc and parsed.scheme != 'file':
            issues.append("URL missing domain")

    except ValueError as e:
        issues.append(f"Invalid URL format: {str(e)}")

    return issues

def validate_proxy_url(link: str) -> List[str]:
    """Validate legacy proxy link format"""
    issues = []

    if not link:
        issues.append("Empty proxy link")
        return issues

    if '://' not in link:
        issues.append("Proxy link missing protocol separator")
        return issues

    protocol, _ = link.split('://', 1)

    if not protocol.isascii():
        issues.append(f"Proxy protocol contains non-ASCII characters: {protocol}")
    elif protocol.lower() not in KNOWN_SCHEMES:
        issues.append(f"Unknown proxy protocol: {protocol}")

    return issues

def validate_base64(data: str) -> bool:
    """Validate if text is standard or URL-safe base64, whitespace and missing padding allowed"""
    compact = ''.join(data.split())
    if not compact:
        return False
    padded = compact + '=' * ((4-len(compact)%4)%4)
    altchars = b'-_' if ('-' in padded or '_' in padded) else None
    try:
        base64.b64decode(padded.encode('ascii'), altchars=altchars, validate=True)
        return True
    except (binascii.Error, UnicodeEncodeError):
        return False

def parse_structured(raw: Union[bytes, str]) -> Optional[Dict[str, Any]]:
    """Parse a structured document, None if it is not a JSON object"""
    if not raw:
        return None
    try:
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8-sig')
        data = json.loads(raw)
    except UnicodeDecodeError as e:
        logger.debug(f"Structured document is not UTF-8: {str(e)}")
        return None
    except json.JSONDecodeError as e:
        logger.debug(f"Not a JSON document: {str(e)}")
        return None
    return data if isinstance(data, dict) else None

def has_outbounds(document: Optional[Dict[str, Any]]) -> bool:
    """Check if a parsed document carries an outbounds collection"""
    return isinstance(document, dict) and isinstance(document.get('outbounds'), list)
