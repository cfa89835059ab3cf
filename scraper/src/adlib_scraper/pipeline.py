"""
Command-line crawl of the Meta Ad Library for one keyword/country query.

Usage (examples)
----------------
# Collect 20 active image ads for a keyword in Brazil, print results, no DB
python scraper/scripts/scrape_ad_library.py \
  --keyword "energia solar" --country BR --max-ads 20 \
  --active-status active --media-type image --no-db

# Persist into Postgres (password from DB_PASSWORD)
python scraper/scripts/scrape_ad_library.py \
  --keyword "energia solar" --db-host 127.0.0.1 --db-port 5432

# Drop cached media older than 30 days before crawling
python scraper/scripts/scrape_ad_library.py \
  --keyword "energia solar" --prune-days 30 --no-db
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from datetime import date

from .db import PostgresGateway, ensure_schema, sql_connect
from .engine import run_crawl
from .logging import jlog
from .models import MEDIA_FILTERS, STATUS_FILTERS, CrawlFilters, CrawlQuery, Platform, RunResult
from .persistence import PersistenceGateway
from .settings import DEFAULT_COUNTRY, DEFAULT_MAX_ADS, CrawlSettings
from .storage import prune_media
from .versioning import get_scraper_version

PLATFORM_CHOICES = {p.value.lower().replace(" ", "_"): p for p in Platform}


# ============================
# Argument parsing & validation
# ============================


@dataclass(frozen=True)
class CliArgs:
    keyword: str
    country: str
    max_ads: int
    active_status: str
    media_type: str
    platforms: tuple[str, ...]
    language: str | None
    date_from: date | None
    date_to: date | None
    headful: bool
    debug: bool
    media_dir: str | None
    prune_days: float | None
    dsn: str | None
    db_host: str | None
    db_port: int | None
    dry_run: bool
    no_db: bool

    def to_query(self) -> CrawlQuery:
        filters = CrawlFilters(
            language=self.language,
            platforms=tuple(PLATFORM_CHOICES[p] for p in self.platforms),
            media_type=self.media_type,
            active_status=self.active_status,
            impressions_date_from=self.date_from,
            impressions_date_to=self.date_to,
        )
        return CrawlQuery(keyword=self.keyword, country=self.country, max_ads=self.max_ads, filters=filters)

    def to_settings(self) -> CrawlSettings:
        return CrawlSettings.from_env(
            headless=False if self.headful else None,
            debug=True if self.debug else None,
            media_dir=self.media_dir,
        )


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Collect ads from the Meta Ad Library for a keyword")
    p.add_argument("--keyword", required=True, help="Exact phrase to search for")
    p.add_argument("--country", default=DEFAULT_COUNTRY, help="ISO 3166 alpha-2 country (default: %(default)s)")
    p.add_argument("--max-ads", type=int, default=DEFAULT_MAX_ADS)
    p.add_argument("--active-status", choices=STATUS_FILTERS, default="all")
    p.add_argument("--media-type", choices=MEDIA_FILTERS, default="all")
    p.add_argument(
        "--platform",
        action="append",
        choices=sorted(PLATFORM_CHOICES),
        default=[],
        help="Restrict to a publisher platform (repeatable)",
    )
    p.add_argument("--language", help="Content language code, e.g. pt or en")
    p.add_argument("--date-from", type=_iso_date, help="Earliest delivery start date (YYYY-MM-DD)")
    p.add_argument("--date-to", type=_iso_date, help="Latest delivery start date (YYYY-MM-DD)")
    p.add_argument("--headful", action="store_true", help="Show the browser window")
    p.add_argument("--debug", action="store_true", help="Save diagnostic screenshots under media/debug")
    p.add_argument("--media-dir", help="Root directory of the media cache (default from ADLIB_MEDIA_DIR)")
    p.add_argument("--prune-days", type=float, help="Delete cached media older than this many days before crawling")
    p.add_argument("--dsn", default=os.getenv("DATABASE_URL"), help="libpq connection string (default from DATABASE_URL)")
    p.add_argument("--db-host")
    p.add_argument("--db-port", type=int)
    p.add_argument("--dry-run", action="store_true", help="Log database writes instead of executing them")
    p.add_argument("--no-db", action="store_true", help="Skip persistence and only print the run output")
    return p


def validate_args(p: argparse.ArgumentParser, ns: argparse.Namespace) -> None:
    if ns.max_ads < 1:
        p.error("--max-ads must be >= 1")
    if ns.prune_days is not None and ns.prune_days <= 0:
        p.error("--prune-days must be > 0")
    if ns.date_from and ns.date_to and ns.date_from > ns.date_to:
        p.error(f"--date-from ({ns.date_from}) is after --date-to ({ns.date_to})")
    if not (ns.no_db or ns.dry_run or ns.dsn or ns.db_host):
        p.error("one of --dsn, --db-host, --dry-run or --no-db is required")


def parse_args(argv: list[str] | None = None) -> CliArgs:
    p = build_parser()
    ns = p.parse_args(argv)
    validate_args(p, ns)
    return CliArgs(
        keyword=ns.keyword,
        country=ns.country,
        max_ads=ns.max_ads,
        active_status=ns.active_status,
        media_type=ns.media_type,
        platforms=tuple(dict.fromkeys(ns.platform)),
        language=ns.language,
        date_from=ns.date_from,
        date_to=ns.date_to,
        headful=ns.headful,
        debug=ns.debug,
        media_dir=ns.media_dir,
        prune_days=ns.prune_days,
        dsn=ns.dsn,
        db_host=ns.db_host,
        db_port=ns.db_port,
        dry_run=ns.dry_run,
        no_db=ns.no_db,
    )


# ============================
# Run
# ============================


def open_gateway(args: CliArgs) -> PostgresGateway | None:
    if args.no_db:
        return None
    version = get_scraper_version()
    if args.dry_run:
        return PostgresGateway(None, scraper_version=version, dry_run=True)
    con = sql_connect(args.dsn, args.db_host, args.db_port)
    ensure_schema(con)
    return PostgresGateway(con, scraper_version=version)


async def run(args: CliArgs, *, gateway: PersistenceGateway | None = None, **engine_kwargs) -> RunResult:
    """Execute one crawl for the supplied CLI arguments and print the run output."""

    query = args.to_query()
    settings = args.to_settings()
    owned = gateway is None
    if owned:
        gateway = open_gateway(args)
    if args.prune_days is not None:
        prune_media(settings.media_dir, args.prune_days)
    jlog("info", event="cli_run", query=query.to_dict(), dry_run=args.dry_run, no_db=args.no_db)
    try:
        result = await run_crawl(query, settings=settings, gateway=gateway, **engine_kwargs)
    finally:
        if owned and isinstance(gateway, PostgresGateway):
            gateway.close()
    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2, default=str)
    sys.stdout.write("\n")
    return result


__all__ = ["CliArgs", "build_parser", "open_gateway", "parse_args", "run"]
