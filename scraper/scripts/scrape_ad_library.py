#!/usr/bin/env python3
"""CLI shim for the Ad Library crawler.

Delegates to :mod:`adlib_scraper.pipeline`; kept so automation can execute
``scripts/scrape_ad_library.py`` directly.
"""
from __future__ import annotations

import asyncio

from adlib_scraper.logging import configure_logging, logging_context, new_run_id, set_global_context
from adlib_scraper.pipeline import CliArgs, parse_args, run
from adlib_scraper.versioning import SCRIPT_NAME, get_scraper_version


def main() -> None:
    """Parse CLI arguments and execute one crawl run."""
    configure_logging()
    set_global_context(app="adlib_scraper", pipeline=SCRIPT_NAME)
    args: CliArgs = parse_args()
    with logging_context(run_id=new_run_id(), scraper_version=get_scraper_version(), keyword=args.keyword, country=args.country):
        result = asyncio.run(run(args))
    raise SystemExit(0 if result.success else 1)


if __name__ == "__main__":
    main()
