#!/usr/bin/env python3
"""
Outbound filtering for SubRouter
Case-insensitive substring selection by tag, source order preserved
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from logger import get_logger
from models import DocumentKind, LegacyEntry, NormalizedDocument, outbound_tag

logger = get_logger()


class FilterSet:
    """Ordered set of filter tokens; empty matches everything"""

    def __init__(self, tokens: Iterable[str] = ()):
        seen = []
        for token in tokens:
            token = token.strip()
            if token and token not in seen:
                seen.append(token)
        self.tokens = tuple(seen)
        self._folded = tuple(t.casefold() for t in self.tokens)

    @classmethod
    def parse(cls, value: Union[None, str, "FilterSet", Sequence[str]]) -> "FilterSet":
        """Build from a space-delimited configuration string or a token list"""
        if isinstance(value, FilterSet):
            return value
        if not value:
            return cls()
        if isinstance(value, str):
            return cls(value.split())
        return cls(value)

    def matches(self, tag: Optional[str]) -> bool:
        if not self._folded:
            return True
        folded = (tag or "").casefold()
        return any(token in folded for token in self._folded)

    def __bool__(self) -> bool:
        return bool(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self):
        return iter(self.tokens)

    def __repr__(self) -> str:
        return f"FilterSet({' '.join(self.tokens)!r})"


def entry_tag(entry: Union[Dict[str, Any], LegacyEntry]) -> str:
    if isinstance(entry, LegacyEntry):
        return entry.tag
    return outbound_tag(entry)


def filter_entries(entries: Sequence[Any], filters: Any = None) -> list:
    """Entries whose tag matches the filter set, in source order"""
    filter_set = FilterSet.parse(filters)
    selected = [e for e in entries if filter_set.matches(entry_tag(e))]
    if filter_set:
        logger.debug(f"Filter {filter_set!r} kept {len(selected)} of {len(entries)} entries")
    return selected


def filter_tags(entries: Sequence[Any], filters: Any = None) -> List[str]:
    """Tags of matching entries; structured outbounds without a tag are omitted"""
    return [tag for tag in (entry_tag(e) for e in filter_entries(entries, filters)) if tag]


def filter_objects(document: NormalizedDocument, filters: Any = None) -> List[Dict[str, Any]]:
    """Full outbound mappings of matching entries

    Only structured documents carry outbound objects. A legacy document
    yields an empty list; use the raw link query for those.
    """
    if document.kind != DocumentKind.STRUCTURED:
        logger.debug("Legacy subscription requires proxy link parsing, no outbound objects returned")
        return []
    return filter_entries(document.outbounds, filters)


def filter_links(entries: Sequence[LegacyEntry], filters: Any = None) -> List[str]:
    """Raw connection links of matching legacy entries"""
    return [e.link for e in filter_entries(entries, filters)]
