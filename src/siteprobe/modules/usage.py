"""Daily usage accounting behind an injectable store."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol

from siteprobe.errors import UsageLimitError

FREE_DAILY_LIMIT = 3


@dataclass
class UsageRecord:
    """Scans recorded for one day."""

    day: date
    scans: list[datetime] = field(default_factory=list)


class UsageStore(Protocol):
    """Persistence seam for usage records. Storage format is the store's business."""

    def read(self) -> UsageRecord | None: ...

    def write(self, record: UsageRecord) -> None: ...


class MemoryUsageStore:
    """Process-local store, used by tests and one-shot runs."""

    def __init__(self, record: UsageRecord | None = None):
        self._record = record

    def read(self) -> UsageRecord | None:
        return self._record

    def write(self, record: UsageRecord) -> None:
        self._record = record


class UsageGate:
    """Enforce the free-tier daily scan limit. Pro is unlimited."""

    def __init__(
        self,
        store: UsageStore,
        daily_limit: int = FREE_DAILY_LIMIT,
        clock=lambda: datetime.now(UTC),
    ):
        self.store = store
        self.daily_limit = daily_limit
        self._clock = clock

    def _today_record(self) -> UsageRecord:
        today = self._clock().date()
        record = self.store.read()
        if record is None or record.day != today:
            return UsageRecord(day=today)
        return record

    def remaining(self) -> int:
        return max(0, self.daily_limit - len(self._today_record().scans))

    def check(self, tier: str) -> None:
        if tier == "pro":
            return
        if self.remaining() == 0:
            raise UsageLimitError(
                f"Free tier limit of {self.daily_limit} scans per day reached",
                limit=self.daily_limit,
            )

    def record(self) -> None:
        record = self._today_record()
        # keep only the tail; the count is all that matters for the limit
        scans = [*record.scans, self._clock()][-max(self.daily_limit, 10) :]
        self.store.write(UsageRecord(day=record.day, scans=scans))
