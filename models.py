#!/usr/bin/env python3
"""
Data model for SubRouter
Subscriptions, normalized documents and the records they hold
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from error_handling import UnsupportedTypeError


class SubscriptionType(str, Enum):
    """Declared subscription type, as configured per section"""
    AUTO = "auto"
    STRUCTURED = "structured"
    LEGACY = "legacy"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SubscriptionType":
        if value is None or value == "":
            return cls.AUTO
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = TYPE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedTypeError(f"Unknown subscription type: {value}")


# Older configuration values
TYPE_ALIASES = {
    "singbox": "structured",
    "base64": "legacy",
}


class DocumentKind(str, Enum):
    """Format a fetched document was detected as"""
    STRUCTURED = "structured"
    LEGACY = "legacy"


@dataclass
class LegacyEntry:
    """One line of a legacy subscription"""
    link: str
    tag: str
    ordinal: int

    @property
    def scheme(self) -> str:
        return self.link.split('://', 1)[0] if '://' in self.link else ""


@dataclass(frozen=True)
class NormalizedDocument:
    """Result of one fetch: structured outbounds or legacy entries, never both"""
    kind: DocumentKind
    outbounds: List[Dict[str, Any]] = field(default_factory=list)
    entries: List[LegacyEntry] = field(default_factory=list)

    def __post_init__(self):
        if self.kind == DocumentKind.STRUCTURED and self.entries:
            raise ValueError("Structured document cannot carry legacy entries")
        if self.kind == DocumentKind.LEGACY and self.outbounds:
            raise ValueError("Legacy document cannot carry outbounds")

    @property
    def records(self) -> list:
        return self.outbounds if self.kind == DocumentKind.STRUCTURED else self.entries

    def __len__(self) -> int:
        return len(self.records)


def outbound_tag(outbound: Dict[str, Any]) -> str:
    """Tag of a structured outbound, '' when missing or not a string"""
    tag = outbound.get('tag') if isinstance(outbound, dict) else None
    return tag if isinstance(tag, str) else ""


@dataclass
class SectionConfig:
    """Subscription options of one named configuration section"""
    name: str
    url: Optional[str] = None
    type: str = "auto"
    selected: str = ""
    filters: str = ""

    @property
    def subscription_type(self) -> SubscriptionType:
        return SubscriptionType.parse(self.type)

    @property
    def selected_tags(self) -> List[str]:
        return self.selected.split()


@dataclass
class UpdateResult:
    """Outcome of updating one section"""
    section: str
    url: Optional[str]
    success: bool
    kind: Optional[DocumentKind] = None
    skipped: bool = False
    error: Optional[str] = None
