"""Write contract for collected records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol, runtime_checkable

from .logging import adlog
from .models import AdRecord


@runtime_checkable
class PersistenceGateway(Protocol):
    def save(self, record: AdRecord) -> None:
        """Create or update the row keyed by ``record.identity``."""


class MemoryGateway:
    """In-process gateway; later saves of an identity replace earlier ones."""

    def __init__(self) -> None:
        self.records: dict[str, AdRecord] = {}
        self.saves = 0

    def save(self, record: AdRecord) -> None:
        self.saves += 1
        self.records[record.identity] = record


@dataclass
class SaveSummary:
    saved: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


def save_records(gateway: PersistenceGateway, records: Iterable[AdRecord]) -> SaveSummary:
    """Save every record; a failure is recorded and the remaining saves continue."""

    summary = SaveSummary()
    for record in records:
        try:
            gateway.save(record)
        except Exception as exc:
            summary.failed += 1
            summary.errors.append(f"persist_failed: {record.identity}: {exc}")
            adlog("persist_failed", identity=record.identity, advertiser=record.advertiser_name, level="error", error=str(exc))
            continue
        summary.saved += 1
    return summary


__all__ = ["MemoryGateway", "PersistenceGateway", "SaveSummary", "save_records"]
