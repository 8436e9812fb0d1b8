#!/usr/bin/env python3
"""
Command line entry point for SubRouter
"""

import argparse
import json
import sys
from typing import List, Optional

from cache_store import CacheStore
from config import SECTIONS_YML, get_cache_dir, load_sections, validate_config
from error_handling import handle_exception, setup_global_exception_handler, ConfigurationError
from filters import filter_tags
from logger import setup_logging, get_logger
from subscriptions import SubscriptionService

logger = get_logger()

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="subrouter", description="Fetch and filter proxy subscriptions")
    parser.add_argument("--config", default=SECTIONS_YML, help="YAML file with section options")
    parser.add_argument("--cache-dir", default=None, help="subscription cache directory")
    parser.add_argument("--timeout", type=float, default=None, help="per-request timeout in seconds")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default=None)

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("update", help="fetch and cache subscriptions of sections")
    p.add_argument("sections", nargs="*", help="section names (default: all)")

    for name, help_text in (("tags", "list outbound tags"), ("outbounds", "print outbound objects as JSON")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("url")
        p.add_argument("--type", default="auto", help="auto, structured or legacy")
        p.add_argument("--filter", default="", help="space-separated filter tokens")

    p = sub.add_parser("links", help="list raw proxy links of a legacy subscription")
    p.add_argument("url")
    p.add_argument("--filter", default="")

    p = sub.add_parser("selected", help="print manually selected tags of a section")
    p.add_argument("section")

    p = sub.add_parser("cache-show", help="print tags from the cached copy of a subscription")
    p.add_argument("url")

    p = sub.add_parser("clear-cache", help="remove cached subscriptions")
    p.add_argument("url", nargs="?")

    return parser

def _print_lines(lines: List[str]) -> None:
    for line in lines:
        print(line)

@handle_exception("update", default=1)
def cmd_update(service: SubscriptionService, args) -> int:
    sections = load_sections(args.config)
    if args.sections:
        missing = [s for s in args.sections if s not in sections]
        if missing:
            raise ConfigurationError(f"Unknown section(s): {', '.join(missing)}")
        sections = {name: sections[name] for name in args.sections}

    results = service.update_sections(sections.values())
    failed = [r for r in results if not r.success]
    logger.info(f"Updated {len(results) - len(failed)} of {len(results)} section(s)")
    return 1 if failed else 0

@handle_exception("tags", default=1)
def cmd_tags(service: SubscriptionService, args) -> int:
    _print_lines(service.list_outbound_tags(args.url, args.type, args.filter))
    return 0

@handle_exception("outbounds", default=1)
def cmd_outbounds(service: SubscriptionService, args) -> int:
    print(json.dumps(service.list_outbound_objects(args.url, args.type, args.filter), indent=2, ensure_ascii=False))
    return 0

@handle_exception("links", default=1)
def cmd_links(service: SubscriptionService, args) -> int:
    _print_lines(service.list_raw_links(args.url, args.filter))
    return 0

@handle_exception("selected", default=1)
def cmd_selected(service: SubscriptionService, args) -> int:
    sections = load_sections(args.config)
    if args.section not in sections:
        raise ConfigurationError(f"Unknown section: {args.section}")
    _print_lines(service.selected_outbounds(sections[args.section]))
    return 0

@handle_exception("cache-show", default=1)
def cmd_cache_show(service: SubscriptionService, args) -> int:
    document = service.cached_document(args.url)
    if document is None:
        logger.warning(f"No cached copy of {args.url}")
        return 1
    _print_lines(filter_tags(document.records))
    return 0

@handle_exception("clear-cache", default=1)
def cmd_clear_cache(service: SubscriptionService, args) -> int:
    removed = service.cache.clear(args.url)
    logger.info(f"Removed {removed} cached subscription(s)")
    return 0

COMMANDS = {
    "update": cmd_update,
    "tags": cmd_tags,
    "outbounds": cmd_outbounds,
    "links": cmd_links,
    "selected": cmd_selected,
    "cache-show": cmd_cache_show,
    "clear-cache": cmd_clear_cache,
}

def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)
    setup_global_exception_handler()

    config_issues = validate_config()
    if config_issues:
        logger.error("Configuration validation failed:")
        for issue in config_issues:
            logger.error(f"  - {issue}")
        return 2

    service = SubscriptionService(cache=CacheStore(args.cache_dir or get_cache_dir()), timeout=args.timeout)
    try:
        return COMMANDS[args.command](service, args)
    finally:
        service.close()

if __name__ == "__main__":
    sys.exit(main())
