#!/usr/bin/env python3
"""
Configuration management for SubRouter
Centralizes constants, environment overrides and section configuration loading
"""

import os
from typing import Dict, List, Any, Optional

import yaml

from error_handling import ConfigurationError
from models import SectionConfig

# Network configuration
DEFAULT_TIMEOUT = 30  # seconds, applied to every single request
MAX_RETRIES = 0       # the structured -> legacy fallback is the only retry

# Client identities (sent as User-Agent, servers pick the format by it)
USER_AGENT_STRUCTURED = "SFA/1.11.9"
USER_AGENT_LINKS = "SubRouter"

# Cache
DEFAULT_CACHE_DIR = "/tmp/subrouter/subscriptions"
CACHE_KEY_LENGTH = 16
CACHE_SUFFIX = ".json"

# Legacy parsing
SYNTHETIC_TAG_PREFIX = "proxy-"
LEGACY_SEPARATOR = "|"

# Section options
OPT_URL = "subscription_url"
OPT_TYPE = "subscription_type"
OPT_SELECTED = "subscription_selected"
OPT_FILTER = "subscription_filter"

# Config file
SECTIONS_YML = "sections.yml"

# Environment
ENV_CACHE_DIR = "SUBROUTER_CACHE_DIR"
ENV_PROXY = "SUBROUTER_PROXY"
ENV_TIMEOUT = "SUBROUTER_TIMEOUT"


def get_cache_dir() -> str:
    """Get cache directory from environment or default"""
    return os.environ.get(ENV_CACHE_DIR) or DEFAULT_CACHE_DIR

def get_proxy_config() -> Optional[str]:
    """Get HTTP proxy used for subscription fetches, if any"""
    proxy = os.environ.get(ENV_PROXY, "").strip()
    return proxy if proxy else None

def get_timeout() -> float:
    """Get per-request timeout in seconds"""
    raw = os.environ.get(ENV_TIMEOUT)
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_TIMEOUT} must be a number, got {raw!r}")

def validate_config() -> List[str]:
    """Validate configuration and return list of issues"""
    issues = []

    try:
        timeout = get_timeout()
    except ConfigurationError as e:
        issues.append(str(e))
    else:
        if timeout <= 0:
            issues.append("Request timeout must be positive")

    if MAX_RETRIES < 0:
        issues.append("MAX_RETRIES must be non-negative")

    if USER_AGENT_STRUCTURED == USER_AGENT_LINKS:
        issues.append("Structured and legacy client identities must differ")

    if CACHE_KEY_LENGTH < 16:
        issues.append("CACHE_KEY_LENGTH must keep at least 64 bits of the hash")

    return issues

def load_sections(path: str = SECTIONS_YML) -> Dict[str, SectionConfig]:
    """Load named sections from a YAML file

    The file maps section names to their options, e.g.::

        main:
          subscription_url: https://example.com/sub
          subscription_type: auto
          subscription_filter: us jp
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Section configuration not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"YAML parsing error in {path}: {str(e)}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping of sections")

    sections = {}
    for name, options in data.items():
        sections[str(name)] = section_from_options(str(name), options or {})
    return sections

def section_from_options(name: str, options: Dict[str, Any]) -> SectionConfig:
    """Build a SectionConfig from a raw option mapping"""
    if not isinstance(options, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping of options")

    def opt(key: str) -> Optional[str]:
        value = options.get(key)
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return ' '.join(str(v) for v in value)
        return str(value)

    return SectionConfig(
        name=name,
        url=opt(OPT_URL) or None,
        type=opt(OPT_TYPE) or "auto",
        selected=opt(OPT_SELECTED) or "",
        filters=opt(OPT_FILTER) or "",
    )
