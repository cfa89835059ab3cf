"""Database helpers for the crawl engine."""

from .postgres import PostgresGateway, ensure_schema, sql_connect, upsert_ad

__all__ = [
    "PostgresGateway",
    "ensure_schema",
    "sql_connect",
    "upsert_ad",
]
