"""
Broadcast Scheduler

Orchestrates the two periodic cycles of the relay:

- elements refresh (hours): re-download the TLE
- broadcast tick (seconds): fetch the live position and propagate the
  ground track concurrently, compute derived attributes, publish the new
  snapshot and push it to every subscriber

Both cycles are APScheduler interval jobs. ``tick()`` and
``refresh_elements()`` are plain methods so a single cycle can be driven
directly.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from telemetry_service.attributes import DerivedAttributeCalculator
from telemetry_service.config import config
from telemetry_service.elements_cache import ElementsCache
from telemetry_service.logging_config import get_logger
from telemetry_service.models import TelemetrySnapshot
from telemetry_service.position_fetcher import PositionFetcher
from telemetry_service.propagator import GroundTrackPropagator
from telemetry_service.registry import SubscriberRegistry
from telemetry_service.snapshot import LatestSnapshot

logger = get_logger(__name__)


class BroadcastScheduler:
    """Owns the periodic jobs and the per-tick pipeline."""

    def __init__(self, elements_cache: ElementsCache, propagator: GroundTrackPropagator,
                 fetcher: PositionFetcher, calculator: DerivedAttributeCalculator,
                 registry: SubscriberRegistry, latest: LatestSnapshot,
                 crew_count: int = config.CREW_COUNT,
                 broadcast_interval: timedelta = timedelta(seconds=config.BROADCAST_INTERVAL_SECONDS),
                 refresh_interval: timedelta = timedelta(hours=config.TLE_REFRESH_HOURS)):
        self.elements_cache = elements_cache
        self.propagator = propagator
        self.fetcher = fetcher
        self.calculator = calculator
        self.registry = registry
        self.latest = latest
        self.crew_count = crew_count
        self.broadcast_interval = broadcast_interval
        self.refresh_interval = refresh_interval
        self._workers = ThreadPoolExecutor(max_workers=2, thread_name_prefix="tick")
        self._scheduler: Optional[BackgroundScheduler] = None

    def refresh_elements(self) -> bool:
        return self.elements_cache.refresh()

    def tick(self, now: Optional[datetime] = None) -> Optional[TelemetrySnapshot]:
        """
        Run one broadcast cycle.

        Args:
            now: Tick time used as the track center (default: now, UTC)

        Returns:
            The published snapshot, or None if the position fetch failed
        """
        if now is None:
            now = datetime.now(timezone.utc)

        # One element set for the whole cycle, even if a refresh lands mid-tick
        elements = self.elements_cache.current()

        sample_future = self._workers.submit(self.fetcher.fetch_current)
        track_future = self._workers.submit(self.propagator.track_since, elements, now)
        sample = sample_future.result()
        track = track_future.result()

        if sample is None:
            logger.warning("broadcast_skipped", reason="position unavailable")
            return None

        attributes = self.calculator.compute(elements, sample, now)
        snapshot = TelemetrySnapshot(
            sample=sample,
            track=track,
            attributes=attributes,
            crew_count=self.crew_count,
            created_at=now,
        )
        self.latest.replace(snapshot)

        delivered = self.registry.broadcast(snapshot.to_json())
        logger.debug("broadcast_complete", delivered=delivered, track_points=len(track))
        return snapshot

    def start(self) -> None:
        """Start both periodic jobs. The elements refresh runs immediately."""
        if self._scheduler is not None:
            return

        scheduler = BackgroundScheduler(timezone=timezone.utc)
        scheduler.add_job(
            self.refresh_elements,
            'interval',
            seconds=self.refresh_interval.total_seconds(),
            id='elements_refresh',
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )
        scheduler.add_job(
            self.tick,
            'interval',
            seconds=self.broadcast_interval.total_seconds(),
            id='broadcast_tick',
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "scheduler_started",
            broadcast_interval_s=self.broadcast_interval.total_seconds(),
            refresh_interval_s=self.refresh_interval.total_seconds(),
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop both jobs; in-flight ticks finish when wait is True."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=wait)
            self._scheduler = None
        self._workers.shutdown(wait=wait)
        self.registry.close()
        logger.info("scheduler_stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running


def build_scheduler(oracle=None) -> BroadcastScheduler:
    """Wire the production components together from RelayConfig."""
    latest = LatestSnapshot()
    return BroadcastScheduler(
        elements_cache=ElementsCache(),
        propagator=GroundTrackPropagator(),
        fetcher=PositionFetcher(),
        calculator=DerivedAttributeCalculator(oracle),
        registry=SubscriberRegistry(latest),
        latest=latest,
    )
