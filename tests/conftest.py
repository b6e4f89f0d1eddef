"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from verg.config import Settings
from verg.containers import AppContainer
from verg.domain.journal import SessionRecord, StorageError, UserStats
from verg.domain.settings import AppSettings
from verg.services.clock import Clock
from verg.services.gating import SessionGatingService
from verg.services.journal import ImageStore, JournalRepository, JournalService
from verg.services.settings import SettingsService
from verg.services.stats import JournalStatsService
from verg.services.streaks import StreakService
from verg.services.subscriptions import SubscriptionStatus
from verg.services.timer import CountdownTimer, KeepAwakeLease, PeriodicScheduler


@dataclass
class ManualClock(Clock):
    """Clock that only moves when told to."""

    current: datetime = field(
        default_factory=lambda: datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
    )

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, days: int = 0) -> None:
        self.current = self.current + timedelta(seconds=seconds, days=days)


@dataclass
class RecordedHandle:
    """Handle returned by the recording scheduler."""

    interval: float
    callback: Callable[[], None]
    cancelled: int = 0

    def cancel(self) -> None:
        self.cancelled += 1


@dataclass
class RecordingScheduler(PeriodicScheduler):
    """Scheduler that records registrations instead of running them."""

    handles: list[RecordedHandle] = field(default_factory=list)

    def schedule(self, interval: float, callback: Callable[[], None]) -> RecordedHandle:
        handle = RecordedHandle(interval=interval, callback=callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> list[RecordedHandle]:
        return [handle for handle in self.handles if not handle.cancelled]


@dataclass
class RecordingKeepAwake(KeepAwakeLease):
    """Keep-awake lease that counts acquisitions and releases."""

    acquired: int = 0
    released: int = 0

    def acquire(self) -> None:
        self.acquired += 1

    def release(self) -> None:
        self.released += 1

    @property
    def held(self) -> bool:
        return self.acquired > self.released


@dataclass
class InMemoryJournalRepository(JournalRepository):
    """In-memory journal repository for tests."""

    sessions: list[SessionRecord] = field(default_factory=list)
    stats: UserStats = field(default_factory=UserStats)
    settings: AppSettings = field(default_factory=AppSettings)
    fail_writes: bool = False
    fail_reads: bool = False

    def list_sessions(self) -> list[SessionRecord]:
        self._check_read()
        return sorted(self.sessions, key=lambda item: item.created_at, reverse=True)

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        self._check_read()
        return next((item for item in self.sessions if item.id == session_id), None)

    def append_session(self, record: SessionRecord, stats: UserStats) -> None:
        self._check_write()
        self.sessions.append(record)
        self.stats = stats

    def delete_session(self, session_id: UUID) -> SessionRecord | None:
        self._check_write()
        record = self.get_session(session_id)
        if record is not None:
            self.sessions.remove(record)
        return record

    def load_stats(self) -> UserStats:
        self._check_read()
        return self.stats

    def save_stats(self, stats: UserStats) -> None:
        self._check_write()
        self.stats = stats

    def load_settings(self) -> AppSettings:
        self._check_read()
        return self.settings

    def save_settings(self, settings: AppSettings) -> None:
        self._check_write()
        self.settings = settings

    def clear(self) -> None:
        self._check_write()
        self.sessions = []
        self.stats = UserStats()
        self.settings = AppSettings()

    def _check_read(self) -> None:
        if self.fail_reads:
            raise StorageError("read failed")

    def _check_write(self) -> None:
        if self.fail_writes:
            raise StorageError("write failed")


@dataclass
class InMemoryImageStore(ImageStore):
    """In-memory image store for tests."""

    images: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    fail_saves: bool = False

    def save_image(self, data: bytes) -> str:
        if self.fail_saves:
            raise StorageError("save failed")
        reference = f"{uuid4()}.jpg"
        self.images[reference] = data
        return reference

    def delete_image(self, reference: str) -> None:
        self.deleted.append(reference)
        self.images.pop(reference, None)

    def image_url(self, reference: str) -> str:
        return f"memory://{reference}"

    def clear(self) -> None:
        self.images.clear()


@dataclass
class FakeSubscriptionStatus(SubscriptionStatus):
    """Subscription status with a settable flag."""

    premium: bool = False
    refreshes: int = 0

    def is_premium(self) -> bool:
        return self.premium

    async def refresh(self) -> bool:
        self.refreshes += 1
        return self.premium


def make_record(
    created_at: datetime, duration: float = 600, image_reference: str | None = None
) -> SessionRecord:
    return SessionRecord(
        id=uuid4(),
        occurred_on=created_at.date(),
        duration=duration,
        image_reference=image_reference,
        created_at=created_at,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=str(tmp_path / "data"))


@pytest.fixture
def tz() -> tzinfo:
    return ZoneInfo("UTC")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def repository() -> InMemoryJournalRepository:
    return InMemoryJournalRepository()


@pytest.fixture
def image_store() -> InMemoryImageStore:
    return InMemoryImageStore()


@pytest.fixture
def subscription() -> FakeSubscriptionStatus:
    return FakeSubscriptionStatus()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def keep_awake() -> RecordingKeepAwake:
    return RecordingKeepAwake()


@pytest.fixture
def timer(
    clock: ManualClock,
    scheduler: RecordingScheduler,
    keep_awake: RecordingKeepAwake,
) -> CountdownTimer:
    return CountdownTimer(clock=clock, scheduler=scheduler, keep_awake=keep_awake)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    tz: tzinfo,
    clock: ManualClock,
    repository: InMemoryJournalRepository,
    image_store: InMemoryImageStore,
    subscription: FakeSubscriptionStatus,
    timer: CountdownTimer,
) -> AppContainer:
    async def close_resources() -> None:
        timer.stop()

    return AppContainer(
        settings=settings,
        timezone=tz,
        clock=clock,
        repository=repository,
        image_store=image_store,
        subscription=subscription,
        journal_service=JournalService(
            repository=repository, image_store=image_store, clock=clock, timezone=tz
        ),
        streak_service=StreakService(repository=repository, clock=clock, timezone=tz),
        gating_service=SessionGatingService(
            subscription=subscription,
            repository=repository,
            free_limit=settings.free_session_limit,
        ),
        stats_service=JournalStatsService(
            repository=repository, clock=clock, timezone=tz
        ),
        settings_service=SettingsService(repository),
        timer=timer,
        close_resources=close_resources,
    )
