"""
Ledger Change Detector

Polls getSignaturesForAddress for the tracked address and keeps a
watermark (the last processed signature) so nothing is handled twice.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pumpswap_sniper import constants
from pumpswap_sniper.core.interfaces import LedgerClient
from pumpswap_sniper.core.models import ActivityRecord


@dataclass
class PollBatch:
    """Records from one poll, newest-first as the ledger returns them."""
    records: list[ActivityRecord] = field(default_factory=list)
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    @property
    def newest(self) -> ActivityRecord | None:
        return self.records[0] if self.records else None

    def chronological(self) -> list[ActivityRecord]:
        """Oldest-first, the order records are delivered downstream."""
        return list(reversed(self.records))


class LedgerChangeDetector:
    def __init__(
        self,
        ledger: LedgerClient,
        address: str,
        page_size: int = constants.SIGNATURE_PAGE_SIZE,
        max_pages: int = constants.MAX_SIGNATURE_PAGES,
    ) -> None:
        self.ledger = ledger
        self.address = address
        self.page_size = page_size
        self.max_pages = max_pages
        self.logger = logging.getLogger("pumpswap_sniper.detector")
        self._watermark: str | None = None
        self._seeded = False

    @property
    def watermark(self) -> str | None:
        return self._watermark

    @property
    def seeded(self) -> bool:
        return self._seeded

    async def seed(self) -> str | None:
        """Set the watermark to the most recent signature without replaying history."""
        latest = await self.ledger.get_recent_activity(self.address, limit=1)
        if latest:
            self._watermark = latest[0].signature
            self.logger.info("Watermark seeded at %s", self._watermark[:16])
        else:
            self.logger.info("No activity yet for %s, watermark left empty", self.address[:12])
        self._seeded = True
        return self._watermark

    async def poll(self) -> PollBatch:
        """
        Fetch activity strictly after the watermark (newest-first).

        The first call only seeds the watermark and returns an empty batch.
        The watermark is not moved here; call commit() once the batch has
        been delivered.
        """
        if not self._seeded:
            await self.seed()
            return PollBatch()

        records: list[ActivityRecord] = []
        before: str | None = None
        truncated = False

        for _ in range(self.max_pages):
            chunk = await self.ledger.get_recent_activity(
                self.address,
                limit=self.page_size,
                until=self._watermark,
                before=before,
            )
            records.extend(chunk)
            if len(chunk) < self.page_size:
                break
            before = chunk[-1].signature
        else:
            # Every page came back full; only truncated if something older is still left
            older = await self.ledger.get_recent_activity(
                self.address, limit=1, until=self._watermark, before=before
            )
            if older:
                truncated = True
                self.logger.warning(
                    "Activity burst exceeded %d pages of %d signatures, older entries skipped",
                    self.max_pages, self.page_size,
                )

        if records:
            self.logger.debug("Detected %d new signatures", len(records))
        return PollBatch(records=records, truncated=truncated)

    def commit(self, batch: PollBatch) -> None:
        """Advance the watermark to the newest signature of a delivered batch."""
        newest = batch.newest
        if newest is None:
            return
        self._watermark = newest.signature
        self.logger.debug("Watermark advanced to %s", self._watermark[:16])
