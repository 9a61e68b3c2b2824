"""
Cycle Scheduler - Periodic capture -> extract -> classify -> merge.

This module provides the CycleScheduler class which drives the zone color
pipeline on a fixed period and guards against overlapping cycles.

Cycle:
1. Guard: drop the tick if a cycle is running or the source is not ready
2. Mark every zone as processing
3. Capture one frame (abort the cycle on failure)
4. Fan out one extract+classify task per zone (scatter)
5. Wait for all of them (gather barrier)
6. Merge results into the registry, processing cleared
7. Notify snapshot listeners

Concurrency Model:
- Single asyncio event loop; concurrency is concurrent pending awaits,
  never parallel mutation
- The cycle flag is checked and set with no await in between, so two
  ticks can never both pass the guard
- stop() cancels the periodic schedule only; a cycle already dispatched
  runs to completion and its results are still applied
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from capcolor_classifier import (
    ERROR_RESULT,
    NONE_RESULT,
    ColorClassifier,
    ZoneColorResult,
)
from capcolor_processor.frame_source import Frame, FrameSource
from capcolor_processor.merger import force_error, mark_processing, merge_results
from capcolor_zone import Zone, ZoneExtractor, ZoneRegistry

logger = logging.getLogger(__name__)

CAPTURE_ERROR_MESSAGE = "Failed to capture frame from the video source."
AGGREGATE_ERROR_MESSAGE = "Failed to analyze image. See logs for details."


@dataclass(frozen=True)
class CycleReport:
    """
    Outcome of one cycle, handed to snapshot listeners.

    Attributes:
        cycle_id: Monotonic cycle number (1-based)
        status: "completed", "capture_failed" or "failed"
        zones: Zone snapshot after the cycle
        error: Process-wide error message (None when the cycle completed)
        mode: Classification mode the cycle ran with
    """

    cycle_id: int
    status: str
    zones: Tuple[Zone, ...]
    error: Optional[str]
    mode: str


SnapshotListener = Callable[[CycleReport], None]


class CycleScheduler:
    """
    Periodic, non-overlapping zone classification.

    Usage:
        scheduler = CycleScheduler(
            registry=registry,
            frame_source=frame_source,
            extractor=ZoneExtractor(),
            classifier=LocalColorClassifier(),
            period_s=3.0,
        )
        scheduler.add_listener(publisher_callback)

        scheduler.start()        # periodic ticks once the source is ready
        ...
        scheduler.stop()         # no new ticks
        await scheduler.drain()  # let the in-flight cycle finish
    """

    def __init__(
        self,
        registry: ZoneRegistry,
        frame_source: FrameSource,
        extractor: ZoneExtractor,
        classifier: ColorClassifier,
        period_s: float = 3.0,
    ):
        """
        Args:
            registry: Zone registry (sole shared state)
            frame_source: Source of frames
            extractor: Zone extractor
            classifier: Initial classification strategy
            period_s: Tick period in seconds
        """
        if period_s <= 0:
            raise ValueError(f"period_s must be > 0, got {period_s}")

        self.registry = registry
        self.frame_source = frame_source
        self.extractor = extractor
        self.period_s = period_s

        self._classifier = classifier
        self._listeners: List[SnapshotListener] = []

        # Cycle state
        self._cycle_in_progress = False
        self._error_message: Optional[str] = None
        self._cycle_id = 0
        self._last_frame: Optional[Frame] = None

        # Schedule state
        self._loop_task: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

        # Stats
        self._cycles_completed = 0
        self._cycles_failed = 0
        self._cycles_skipped = 0

    # ─────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────

    @property
    def is_cycle_in_progress(self) -> bool:
        return self._cycle_in_progress

    @property
    def error_message(self) -> Optional[str]:
        """Process-wide error for the display layer (None when healthy)."""
        return self._error_message

    @property
    def last_frame(self) -> Optional[Frame]:
        """Most recent successfully captured frame (None before the first)."""
        return self._last_frame

    @property
    def classifier(self) -> ColorClassifier:
        return self._classifier

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def set_classifier(self, classifier: ColorClassifier) -> None:
        """Swap the strategy; takes effect on the next cycle."""
        previous = self._classifier.mode
        self._classifier = classifier
        logger.info(f"Classification mode changed: {previous} -> {classifier.mode}")

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def get_stats(self) -> Dict:
        return {
            "cycles_completed": self._cycles_completed,
            "cycles_failed": self._cycles_failed,
            "cycles_skipped": self._cycles_skipped,
            "cycle_in_progress": self._cycle_in_progress,
            "mode": self._classifier.mode,
            "error": self._error_message,
        }

    # ─────────────────────────────────────────────────────────────────────
    # Cycle
    # ─────────────────────────────────────────────────────────────────────

    async def tick(self) -> bool:
        """
        Run one cycle unless one is already running or the source is not ready.

        Returns:
            True if a cycle ran, False if the tick was dropped
        """
        if self._cycle_in_progress or not self.frame_source.is_ready:
            self._cycles_skipped += 1
            logger.debug(
                "Tick dropped "
                f"(cycle_in_progress={self._cycle_in_progress}, "
                f"source_ready={self.frame_source.is_ready})"
            )
            return False

        self._cycle_in_progress = True
        try:
            await self._run_cycle()
        finally:
            self._cycle_in_progress = False
        return True

    async def _run_cycle(self) -> None:
        self._cycle_id += 1
        cycle_id = self._cycle_id
        classifier = self._classifier

        zones = self.registry.snapshot()
        self.registry.replace(mark_processing(zones, True))

        # 1. Capture
        try:
            frame = await self.frame_source.get_current_frame()
        except Exception as e:
            logger.error(f"❌ Cycle {cycle_id}: frame capture failed: {e}")
            frame = None

        if frame is None or frame.is_empty:
            self.registry.replace(mark_processing(self.registry.snapshot(), False))
            self._error_message = CAPTURE_ERROR_MESSAGE
            self._cycles_failed += 1
            logger.warning(f"⚠️ Cycle {cycle_id} aborted: no frame to classify")
            self._notify(cycle_id, "capture_failed", classifier.mode)
            return

        self._last_frame = frame

        # 2. Scatter / gather
        try:
            results = await self._classify_all(frame, zones, classifier)
        except Exception as e:
            logger.error(
                f"❌ Cycle {cycle_id}: an error occurred during classification: {e}",
                exc_info=True,
            )
            self.registry.replace(force_error(self.registry.snapshot()))
            self._error_message = AGGREGATE_ERROR_MESSAGE
            self._cycles_failed += 1
            self._notify(cycle_id, "failed", classifier.mode)
            return

        # 3. Merge
        self.registry.replace(merge_results(self.registry.snapshot(), results))
        self._error_message = None
        self._cycles_completed += 1

        summary = ", ".join(f"{r.zone_id}={r.result.color_name}" for r in results)
        logger.info(f"Cycle {cycle_id} completed ({classifier.mode}): {summary}")
        self._notify(cycle_id, "completed", classifier.mode)

    async def _classify_all(
        self, frame: Frame, zones: Sequence[Zone], classifier: ColorClassifier
    ) -> List[ZoneColorResult]:
        """Dispatch one task per zone and wait for all of them."""
        tasks = [self._classify_zone(frame, zone, classifier) for zone in zones]
        return list(await asyncio.gather(*tasks))

    async def _classify_zone(
        self, frame: Frame, zone: Zone, classifier: ColorClassifier
    ) -> ZoneColorResult:
        """Extract and classify one zone; failures become ERROR_RESULT."""
        try:
            zone_image = self.extractor.extract(
                frame.image, zone.id, zone.geometry, encode=classifier.needs_encoded
            )
            if zone_image.is_empty:
                result = NONE_RESULT
            else:
                result = await classifier.classify(zone_image)
        except Exception as e:
            logger.error(f"❌ Classification failed for zone {zone.id}: {e}", exc_info=True)
            result = ERROR_RESULT

        return ZoneColorResult(zone_id=zone.id, result=result)

    def _notify(self, cycle_id: int, status: str, mode: str) -> None:
        report = CycleReport(
            cycle_id=cycle_id,
            status=status,
            zones=self.registry.snapshot(),
            error=self._error_message,
            mode=mode,
        )
        for listener in self._listeners:
            try:
                listener(report)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}", exc_info=True)

    # ─────────────────────────────────────────────────────────────────────
    # Schedule
    # ─────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start periodic ticks (must be called from the event loop)."""
        if self.is_running:
            logger.warning("Scheduler already running")
            return
        self._loop_task = asyncio.create_task(self._run_periodic(), name="cycle-scheduler")

    def stop(self) -> None:
        """Cancel future ticks; in-flight cycles are not aborted."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
            logger.info("Cycle schedule stopped")

    async def drain(self) -> None:
        """Wait for dispatched cycles to finish."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def wait(self) -> None:
        """Block until the schedule ends (stop() or source unavailable)."""
        if self._loop_task is None:
            return
        await asyncio.wait({self._loop_task})

    async def _run_periodic(self) -> None:
        await self.frame_source.wait_ready()
        logger.info(f"⏱️  Cycle schedule started (every {self.period_s:.1f}s)")

        while True:
            await asyncio.sleep(self.period_s)
            if not self.frame_source.is_available:
                logger.warning("⚠️ Frame source unavailable, stopping cycle schedule")
                return
            self._dispatch_tick()

    def _dispatch_tick(self) -> None:
        task = asyncio.create_task(self.tick())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
