#!/usr/bin/env python3
"""
Subscription service for SubRouter
Per-section update and query operations built on fetch, parse, filter and cache
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from cache_store import CacheStore
from config import USER_AGENT_LINKS
from error_handling import ConfigMissing, ErrorAggregator, SubRouterError
from fetch import fetch, fetch_document, normalize, cached_form, load_cached
from filters import filter_tags, filter_objects, filter_links
from links import parse_legacy
from logger import get_logger, log_statistics
from models import NormalizedDocument, SectionConfig, SubscriptionType, UpdateResult
from network import RobustSession, create_session, sanitize_url
from validation import validate_url

logger = get_logger()


class SubscriptionService:
    """Fetches subscriptions for configuration sections and serves filtered views"""

    def __init__(self, cache: Optional[CacheStore] = None,
                 session: Optional[RobustSession] = None,
                 timeout: Optional[float] = None):
        self.cache = cache or CacheStore()
        self.session = session or create_session(timeout=timeout)
        self.timeout = timeout

    def _check_url(self, url: str) -> None:
        issues = validate_url(url)
        if issues:
            logger.warning(f"URL validation issues for {sanitize_url(url)}: {', '.join(issues)}")

    def fetch_document(self, url: str, sub_type: Union[str, SubscriptionType, None] = None) -> NormalizedDocument:
        """Live fetch of one subscription, parsed into a NormalizedDocument"""
        self._check_url(url)
        return fetch_document(url, sub_type, self.session, self.timeout)

    def update_section(self, section: SectionConfig) -> UpdateResult:
        """Fetch the section's subscription and write it to the cache

        Never raises for fetch, decode or cache failures; they are logged and
        reported in the returned UpdateResult.
        """
        try:
            return self._update_section(section)
        except SubRouterError as e:
            logger.error(f"Failed to update subscription for section {section.name} "
                         f"({sanitize_url(section.url)}): {str(e)}")
            return UpdateResult(section=section.name, url=section.url, success=False, error=str(e))

    def _update_section(self, section: SectionConfig) -> UpdateResult:
        url = section.url
        if not url:
            logger.debug(f"Section {section.name} has no subscription configured")
            return UpdateResult(section=section.name, url=None, success=True, skipped=True)

        logger.info(f"Updating subscription for section {section.name}")
        sub_type = section.subscription_type
        self._check_url(url)
        with self.cache.lock_for(url):
            result = fetch(url, sub_type, self.session, self.timeout)
            document = normalize(result.raw, result.kind)
            self.cache.save(url, cached_form(document, result.raw))

        logger.info(f"Subscription updated successfully for section {section.name} "
                    f"({len(document)} {document.kind.value} entries)")
        return UpdateResult(section=section.name, url=url, success=True, kind=document.kind)

    def update_sections(self, sections: Iterable[SectionConfig]) -> List[UpdateResult]:
        """Update every section; one failing section does not stop the others"""
        aggregator = ErrorAggregator()
        results = []
        for section in sections:
            try:
                results.append(self._update_section(section))
            except SubRouterError as e:
                aggregator.add_error(e, f"section {section.name}", url=sanitize_url(section.url))
                results.append(UpdateResult(section=section.name, url=section.url, success=False, error=str(e)))
        aggregator.log_summary()
        log_statistics({
            'sections': len(results),
            'updated': sum(1 for r in results if r.success and not r.skipped),
            'skipped': sum(1 for r in results if r.skipped),
            'failed': sum(1 for r in results if not r.success),
        })
        return results

    def list_outbound_tags(self, url: str, sub_type: Union[str, SubscriptionType, None] = None,
                           filters: Any = None) -> List[str]:
        """Tags of the subscription's outbounds matching filters"""
        document = self.fetch_document(url, sub_type)
        return filter_tags(document.records, filters)

    def list_outbound_objects(self, url: str, sub_type: Union[str, SubscriptionType, None] = None,
                              filters: Any = None) -> List[Dict[str, Any]]:
        """Full outbound objects matching filters, empty for legacy subscriptions"""
        document = self.fetch_document(url, sub_type)
        return filter_objects(document, filters)

    def list_raw_links(self, url: str, filters: Any = None) -> List[str]:
        """Connection links of a legacy subscription matching filters"""
        self._check_url(url)
        raw = self.session.fetch_bytes(url, user_agent=USER_AGENT_LINKS, timeout=self.timeout)
        return filter_links(parse_legacy(raw), filters)

    def selected_outbounds(self, section: SectionConfig) -> List[str]:
        """Manually pinned tags of a section, verbatim"""
        return section.selected_tags

    def section_tags(self, section: SectionConfig) -> List[str]:
        """Tags for a section using its own URL, type and filter options"""
        if not section.url:
            raise ConfigMissing(f"Section {section.name} has no subscription URL")
        return self.list_outbound_tags(section.url, section.subscription_type, section.filters)

    def cached_document(self, url: str) -> Optional[NormalizedDocument]:
        """Document from the last successful update of url, None if not cached"""
        data = self.cache.load(url)
        if data is None:
            return None
        return load_cached(data)

    def close(self):
        self.session.close()
