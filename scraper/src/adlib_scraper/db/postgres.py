"""Postgres persistence for collected ad records."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Optional

import psycopg2
from psycopg2.extras import Json

from ..logging import adlog, jlog
from ..models import AdRecord

UTC = getattr(datetime, "UTC", timezone.utc)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS ads (
    identity           TEXT PRIMARY KEY,
    library_id         TEXT,
    advertiser_name    TEXT NOT NULL,
    body_text          TEXT,
    media_type         TEXT NOT NULL,
    creative_url       TEXT NOT NULL,
    image_url          TEXT,
    video_url          TEXT,
    outbound_link      TEXT,
    platforms          TEXT[] NOT NULL,
    start_date         DATE,
    end_date           DATE,
    active_days        INTEGER,
    active_time_label  TEXT,
    impressions_min    BIGINT,
    impressions_max    BIGINT,
    status             TEXT NOT NULL,
    keyword            TEXT NOT NULL,
    country            TEXT NOT NULL,
    query              JSONB,
    scraper_version    TEXT,
    discovered_at      TIMESTAMPTZ NOT NULL,
    created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at         TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS ads_keyword_country_idx ON ads (keyword, country);
"""

UPSERT_SQL = """
INSERT INTO ads(
    identity, library_id, advertiser_name, body_text, media_type, creative_url,
    image_url, video_url, outbound_link, platforms, start_date, end_date,
    active_days, active_time_label, impressions_min, impressions_max, status,
    keyword, country, query, scraper_version, discovered_at
)
VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
ON CONFLICT (identity) DO UPDATE
   SET library_id        = COALESCE(EXCLUDED.library_id, ads.library_id),
       advertiser_name   = EXCLUDED.advertiser_name,
       body_text         = COALESCE(EXCLUDED.body_text, ads.body_text),
       media_type        = EXCLUDED.media_type,
       creative_url      = EXCLUDED.creative_url,
       image_url         = COALESCE(EXCLUDED.image_url, ads.image_url),
       video_url         = COALESCE(EXCLUDED.video_url, ads.video_url),
       outbound_link     = COALESCE(EXCLUDED.outbound_link, ads.outbound_link),
       platforms         = EXCLUDED.platforms,
       start_date        = COALESCE(EXCLUDED.start_date, ads.start_date),
       end_date          = COALESCE(EXCLUDED.end_date, ads.end_date),
       active_days       = COALESCE(EXCLUDED.active_days, ads.active_days),
       active_time_label = COALESCE(EXCLUDED.active_time_label, ads.active_time_label),
       impressions_min   = COALESCE(EXCLUDED.impressions_min, ads.impressions_min),
       impressions_max   = COALESCE(EXCLUDED.impressions_max, ads.impressions_max),
       status            = EXCLUDED.status,
       query             = EXCLUDED.query,
       scraper_version   = EXCLUDED.scraper_version,
       updated_at        = NOW()
"""


def sql_connect(dsn: str | None = None, db_host: str | None = None, db_port: int | None = None):
    """Return a psycopg2 connection from a DSN or from host/port plus env credentials."""

    if dsn:
        return psycopg2.connect(dsn, connect_timeout=10)
    if not db_host:
        raise RuntimeError("either a DSN or db_host must be provided for database connections")
    password = os.getenv("DB_PASSWORD")
    if not password:
        raise RuntimeError("DB_PASSWORD environment variable is required for database connections")
    return psycopg2.connect(
        host=db_host,
        port=db_port or 5432,
        dbname=os.getenv("DB_NAME", "adlibrary"),
        user=os.getenv("DB_USER", "postgres"),
        password=password,
        connect_timeout=10,
        sslmode=os.getenv("DB_SSLMODE", "prefer"),
    )


def ensure_schema(con, *, dry_run: bool = False) -> None:
    if dry_run:
        jlog("info", event="dry_run_schema")
        return
    with con.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    con.commit()


def ad_row(record: AdRecord, scraper_version: Optional[str] = None) -> tuple:
    impressions = record.impression_range
    return (
        record.identity,
        record.library_id,
        record.advertiser_name,
        record.body_text,
        record.media_type.value,
        record.creative_url,
        record.image_url,
        record.video_url,
        record.outbound_link,
        [p.value for p in record.platforms],
        record.start_date,
        record.end_date,
        record.active_days,
        record.active_time_label,
        impressions.min if impressions else None,
        impressions.max if impressions else None,
        record.status.value,
        record.query.keyword,
        record.query.country,
        Json(record.query.to_dict()),
        scraper_version,
        record.discovered_at or datetime.now(UTC),
    )


def upsert_ad(con, record: AdRecord, *, scraper_version: Optional[str] = None, dry_run: bool = False) -> None:
    """Insert or refresh the ``ads`` row for ``record.identity``."""

    if dry_run:
        adlog(
            "dry_run_upsert_ad",
            identity=record.identity,
            advertiser=record.advertiser_name,
            media_type=record.media_type.value,
            creative_url=record.creative_url,
        )
        return
    with con.cursor() as cur:
        cur.execute(UPSERT_SQL, ad_row(record, scraper_version))
    con.commit()
    adlog("ad_saved", identity=record.identity, advertiser=record.advertiser_name)


class PostgresGateway:
    """:class:`~adlib_scraper.persistence.PersistenceGateway` backed by ``ads``."""

    def __init__(self, con, *, scraper_version: Optional[str] = None, dry_run: bool = False) -> None:
        self.con = con
        self.scraper_version = scraper_version
        self.dry_run = dry_run

    def save(self, record: AdRecord) -> None:
        try:
            upsert_ad(self.con, record, scraper_version=self.scraper_version, dry_run=self.dry_run)
        except psycopg2.Error:
            self.con.rollback()
            raise

    def close(self) -> None:
        if self.con is not None:
            self.con.close()


__all__ = [
    "PostgresGateway",
    "SCHEMA_SQL",
    "UPSERT_SQL",
    "ad_row",
    "ensure_schema",
    "sql_connect",
    "upsert_ad",
]
