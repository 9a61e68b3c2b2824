"""
Tests for CycleScheduler: guard, capture failures, fan-out and merge.
"""

import asyncio

import numpy as np
import pytest

from capcolor_classifier import ColorResult, RemoteColorClassifier
from capcolor_processor.scheduler import (
    AGGREGATE_ERROR_MESSAGE,
    CAPTURE_ERROR_MESSAGE,
    CycleScheduler,
)
from capcolor_zone import Zone, ZoneExtractor, ZoneGeometry, ZoneRegistry

from conftest import FakeBackend, FakeFrameSource, ScriptedClassifier


def make_scheduler(registry, frame_source, classifier, period_s=3.0):
    return CycleScheduler(
        registry=registry,
        frame_source=frame_source,
        extractor=ZoneExtractor(),
        classifier=classifier,
        period_s=period_s,
    )


class TestTickGuard:

    @pytest.mark.asyncio
    async def test_source_not_ready_drops_tick(self, registry):
        frame_source = FakeFrameSource(ready=False)
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())

        assert await scheduler.tick() is False
        assert frame_source.capture_count == 0
        assert scheduler.get_stats()["cycles_skipped"] == 1

    @pytest.mark.asyncio
    async def test_overlapping_tick_dropped(self, registry, frame_source):
        classifier = ScriptedClassifier(delay=0.05)
        scheduler = make_scheduler(registry, frame_source, classifier)

        first = asyncio.create_task(scheduler.tick())
        await asyncio.sleep(0)

        assert scheduler.is_cycle_in_progress
        assert all(z.is_processing for z in registry.snapshot())
        assert await scheduler.tick() is False

        assert await first is True
        assert frame_source.capture_count == 1
        assert not scheduler.is_cycle_in_progress

    @pytest.mark.asyncio
    async def test_guard_released_after_cycle(self, registry, frame_source):
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())

        assert await scheduler.tick() is True
        assert await scheduler.tick() is True
        assert frame_source.capture_count == 2


class TestCaptureFailure:

    @pytest.mark.asyncio
    async def test_zero_size_frame(self, registry):
        frame_source = FakeFrameSource(image=np.zeros((0, 0, 3), dtype=np.uint8))
        classifier = ScriptedClassifier()
        scheduler = make_scheduler(registry, frame_source, classifier)

        await scheduler.tick()

        assert classifier.calls == []
        assert all(not z.is_processing for z in registry.snapshot())
        assert all(z.color_name == "Scanning..." for z in registry.snapshot())
        assert scheduler.error_message == CAPTURE_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_capture_exception(self, registry, frame_source):
        frame_source.error = RuntimeError("device unplugged")
        classifier = ScriptedClassifier()
        scheduler = make_scheduler(registry, frame_source, classifier)

        await scheduler.tick()

        assert classifier.calls == []
        assert all(not z.is_processing for z in registry.snapshot())
        assert scheduler.error_message == CAPTURE_ERROR_MESSAGE
        assert scheduler.get_stats()["cycles_failed"] == 1


class TestClassification:

    @pytest.mark.asyncio
    async def test_every_zone_classified(self, registry, frame_source):
        classifier = ScriptedClassifier(results={
            2: ColorResult(color_name="Blue", hex_code="#0000FF"),
        })
        scheduler = make_scheduler(registry, frame_source, classifier)

        await scheduler.tick()

        zones = registry.snapshot()
        assert sorted(classifier.calls) == [1, 2, 3, 4]
        assert [z.color_name for z in zones] == ["Red", "Blue", "Red", "Red"]
        assert not any(z.is_processing for z in zones)
        assert scheduler.error_message is None
        assert scheduler.last_frame is not None

    @pytest.mark.asyncio
    async def test_one_zone_failure_is_isolated(self, registry, frame_source):
        classifier = ScriptedClassifier(failing_zone_ids={3})
        scheduler = make_scheduler(registry, frame_source, classifier)

        await scheduler.tick()

        zones = registry.snapshot()
        assert [z.color_name for z in zones] == ["Red", "Red", "Error", "Red"]
        assert zones[2].color_hex == "#FF4136"
        assert scheduler.error_message is None

    @pytest.mark.asyncio
    async def test_remote_zone_failure_is_isolated(self, registry, frame_source):
        backend = FakeBackend(failing_calls={3})
        classifier = RemoteColorClassifier(backend, timeout_s=1.0)
        scheduler = make_scheduler(registry, frame_source, classifier)

        await scheduler.tick()

        zones = registry.snapshot()
        assert [z.color_name for z in zones] == ["Blue", "Blue", "Error", "Blue"]
        assert zones[2].color_hex == "#FF4136"
        assert len(backend.calls) == 4
        for image, mime_type, _ in backend.calls:
            assert image.startswith(b"\xff\xd8")
            assert mime_type == "image/jpeg"
        assert not any(z.is_processing for z in zones)
        assert scheduler.error_message is None
        assert scheduler.get_stats()["mode"] == "remote"

    @pytest.mark.asyncio
    async def test_aggregate_failure(self, registry, frame_source, monkeypatch):
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())

        async def explode(*args, **kwargs):
            raise RuntimeError("gather failed")

        monkeypatch.setattr(scheduler, "_classify_all", explode)
        await scheduler.tick()

        zones = registry.snapshot()
        assert all(z.color_name == "Error" for z in zones)
        assert not any(z.is_processing for z in zones)
        assert scheduler.error_message == AGGREGATE_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_successful_cycle_clears_error(self, registry, frame_source):
        frame_source.error = RuntimeError("glitch")
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())

        await scheduler.tick()
        assert scheduler.error_message is not None

        frame_source.error = None
        await scheduler.tick()
        assert scheduler.error_message is None

    @pytest.mark.asyncio
    async def test_degenerate_zone_skips_classifier(self, frame_source):
        registry = ZoneRegistry([
            Zone(id=1, name="tiny", geometry=ZoneGeometry(x=10, y=10, width=0.1, height=0.1)),
            Zone(id=2, name="big", geometry=ZoneGeometry(x=0, y=0, width=50, height=50)),
        ])
        classifier = ScriptedClassifier()
        scheduler = make_scheduler(registry, frame_source, classifier)

        await scheduler.tick()

        assert classifier.calls == [2]
        assert registry.get(1).color_name == "None"
        assert registry.get(2).color_name == "Red"

    @pytest.mark.asyncio
    async def test_set_classifier_used_next_cycle(self, registry, frame_source):
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())
        replacement = ScriptedClassifier(
            results={i: ColorResult("Green", "#008000") for i in range(1, 5)},
            mode="remote",
        )

        scheduler.set_classifier(replacement)
        await scheduler.tick()

        assert scheduler.classifier is replacement
        assert all(z.color_name == "Green" for z in registry.snapshot())
        assert scheduler.get_stats()["mode"] == "remote"


class TestListeners:

    @pytest.mark.asyncio
    async def test_listener_receives_report(self, registry, frame_source):
        reports = []
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())
        scheduler.add_listener(reports.append)

        await scheduler.tick()

        assert len(reports) == 1
        report = reports[0]
        assert report.cycle_id == 1
        assert report.status == "completed"
        assert report.mode == "local"
        assert report.zones == registry.snapshot()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_cycle(self, registry, frame_source):
        reports = []

        def broken(report):
            raise RuntimeError("display offline")

        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())
        scheduler.add_listener(broken)
        scheduler.add_listener(reports.append)

        await scheduler.tick()

        assert [r.status for r in reports] == ["completed"]

    @pytest.mark.asyncio
    async def test_capture_failure_reported(self, registry, frame_source):
        reports = []
        frame_source.error = RuntimeError("no frame")
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier())
        scheduler.add_listener(reports.append)

        await scheduler.tick()

        assert reports[0].status == "capture_failed"
        assert reports[0].error == CAPTURE_ERROR_MESSAGE


class TestSchedule:

    def test_period_must_be_positive(self, registry, frame_source):
        with pytest.raises(ValueError):
            make_scheduler(registry, frame_source, ScriptedClassifier(), period_s=0)

    @pytest.mark.asyncio
    async def test_periodic_cycles(self, registry, frame_source):
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier(), period_s=0.01)

        scheduler.start()
        assert scheduler.is_running
        for _ in range(200):
            if scheduler.get_stats()["cycles_completed"] >= 2:
                break
            await asyncio.sleep(0.01)
        scheduler.stop()
        await scheduler.drain()

        assert not scheduler.is_running
        assert scheduler.get_stats()["cycles_completed"] >= 2

    @pytest.mark.asyncio
    async def test_stop_lets_inflight_cycle_finish(self, registry, frame_source):
        classifier = ScriptedClassifier(delay=0.05)
        scheduler = make_scheduler(registry, frame_source, classifier, period_s=0.01)

        scheduler.start()
        for _ in range(200):
            if scheduler.is_cycle_in_progress:
                break
            await asyncio.sleep(0.005)
        scheduler.stop()
        await scheduler.drain()

        assert not scheduler.is_cycle_in_progress
        assert all(z.color_name == "Red" for z in registry.snapshot())

    @pytest.mark.asyncio
    async def test_schedule_ends_when_source_unavailable(self, registry, frame_source):
        scheduler = make_scheduler(registry, frame_source, ScriptedClassifier(), period_s=0.01)

        scheduler.start()
        frame_source.is_available = False
        await asyncio.wait_for(scheduler.wait(), timeout=1.0)

        assert not scheduler.is_running
        assert frame_source.capture_count == 0
