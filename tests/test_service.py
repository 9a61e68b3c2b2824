"""
Tests for ColorMonitorService wiring: control commands, snapshots, lifecycle.
"""

import asyncio

import pytest

from capcolor_control import CommandRegistry
from capcolor_processor import ColorMonitorService, ProcessorConfig

from conftest import FakeBackend, FakeFrameSource


class FakeControlPlane:

    def __init__(self, reachable: bool = True):
        self.command_registry = CommandRegistry()
        self.statuses = []
        self.reachable = reachable
        self.connected = False
        self.disconnect_count = 0

    def connect(self, timeout: float = 5.0) -> bool:
        self.connected = self.reachable
        return self.connected

    def disconnect(self) -> None:
        self.connected = False
        self.disconnect_count += 1

    def publish_status(self, status, data=None):
        self.statuses.append((status, data))


class FakePublisher:

    def __init__(self):
        self.snapshots = []
        self.connected = False

    def connect(self, timeout: float = 10.0) -> bool:
        self.connected = True
        return True

    def disconnect(self) -> None:
        self.connected = False

    def publish_snapshot(self, message) -> bool:
        self.snapshots.append(message)
        return True

    def get_stats(self):
        return {"message_count": len(self.snapshots)}


@pytest.fixture
def control_plane():
    return FakeControlPlane()


@pytest.fixture
def publisher():
    return FakePublisher()


def make_service(control_plane=None, publisher=None, mode="local", backend=None, period_ms=3000):
    config = ProcessorConfig(
        service_id="line_01",
        classification_mode=mode,
        cycle_period_ms=period_ms,
    )
    service = ColorMonitorService(
        config,
        frame_source=FakeFrameSource(),
        backend=backend,
        snapshot_publisher=publisher,
        control_plane=control_plane,
    )
    service.setup()
    return service


class TestSetup:

    def test_local_mode_needs_no_api_key(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        service = make_service()
        assert service.scheduler.classifier.mode == "local"
        assert service.backend is None

    def test_remote_mode_without_api_key_fails(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        with pytest.raises(ValueError, match="API_KEY"):
            make_service(mode="remote")

    def test_commands_registered(self, control_plane):
        make_service(control_plane=control_plane)
        assert control_plane.command_registry.available_commands == {
            "set_mode", "list_zones", "get_status"
        }


class TestCycleOutput:

    @pytest.mark.asyncio
    async def test_snapshot_published_per_cycle(self, publisher):
        service = make_service(publisher=publisher)

        await service.scheduler.tick()

        message = publisher.snapshots[0]
        assert message.service_id == "line_01"
        assert message.cycle_id == 1
        assert message.status == "completed"
        assert message.mode == "local"
        assert message.error is None
        assert [z.color_name for z in message.zones] == ["Red"] * 4

    @pytest.mark.asyncio
    async def test_capture_failure_snapshot_carries_error(self, publisher):
        service = make_service(publisher=publisher)
        service.frame_source.error = RuntimeError("no camera")

        await service.scheduler.tick()

        message = publisher.snapshots[0]
        assert message.status == "capture_failed"
        assert message.error is not None
        assert not any(z.is_processing for z in message.zones)


class TestControlCommands:

    def test_set_mode_remote(self, control_plane):
        service = make_service(control_plane=control_plane, backend=FakeBackend())

        control_plane.command_registry.execute("set_mode", {"command": "set_mode", "mode": "remote"})

        assert service.scheduler.classifier.mode == "remote"
        assert control_plane.statuses[-1] == ("mode_changed", {"mode": "remote"})

    def test_set_mode_invalid(self, control_plane):
        service = make_service(control_plane=control_plane)

        control_plane.command_registry.execute("set_mode", {"command": "set_mode", "mode": "psychic"})

        assert service.scheduler.classifier.mode == "local"
        assert control_plane.statuses[-1][0] == "error"

    def test_set_mode_remote_without_api_key(self, control_plane, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        service = make_service(control_plane=control_plane)

        control_plane.command_registry.execute("set_mode", {"command": "set_mode", "mode": "remote"})

        assert service.scheduler.classifier.mode == "local"
        status, data = control_plane.statuses[-1]
        assert status == "error"
        assert "API_KEY" in data["message"]

    def test_list_zones(self, control_plane):
        make_service(control_plane=control_plane)

        control_plane.command_registry.execute("list_zones", {"command": "list_zones"})

        status, data = control_plane.statuses[-1]
        assert status == "zones"
        assert [z["id"] for z in data["zones"]] == [1, 2, 3, 4]

    def test_get_status(self, control_plane, publisher):
        make_service(control_plane=control_plane, publisher=publisher)

        control_plane.command_registry.execute("get_status", {"command": "get_status"})

        status, data = control_plane.statuses[-1]
        assert status == "status"
        assert data["service_id"] == "line_01"
        assert data["scheduler"]["mode"] == "local"
        assert data["publisher"] == {"message_count": 0}

    @pytest.mark.asyncio
    async def test_commands_hop_onto_event_loop(self, control_plane):
        service = make_service(control_plane=control_plane, backend=FakeBackend())
        service._loop = asyncio.get_running_loop()

        await asyncio.to_thread(
            control_plane.command_registry.execute,
            "set_mode",
            {"command": "set_mode", "mode": "remote"},
        )
        await asyncio.sleep(0)

        assert service.scheduler.classifier.mode == "remote"


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_run_until_stopped(self, control_plane, publisher):
        service = make_service(control_plane=control_plane, publisher=publisher, period_ms=10)

        run_task = asyncio.create_task(service.run())
        for _ in range(200):
            if publisher.snapshots:
                break
            await asyncio.sleep(0.01)
        service.request_stop()
        await asyncio.wait_for(run_task, timeout=2.0)

        assert publisher.snapshots
        assert service.frame_source.released
        assert not publisher.connected
        assert not control_plane.connected
        assert control_plane.statuses[0][0] == "running"
        assert control_plane.statuses[-1] == ("stopped", None)

    @pytest.mark.asyncio
    async def test_unreachable_control_broker_keeps_cycles_running(self, publisher):
        control_plane = FakeControlPlane(reachable=False)
        service = make_service(control_plane=control_plane, publisher=publisher, period_ms=10)

        run_task = asyncio.create_task(service.run())
        for _ in range(200):
            if publisher.snapshots:
                break
            await asyncio.sleep(0.01)
        service.request_stop()
        await asyncio.wait_for(run_task, timeout=2.0)

        assert publisher.snapshots
        assert service.scheduler.get_stats()["cycles_completed"] >= 1
        assert service.control_plane is None
        assert control_plane.disconnect_count == 1
        assert control_plane.statuses == []

    @pytest.mark.asyncio
    async def test_run_requires_setup(self):
        service = ColorMonitorService(ProcessorConfig(service_id="x", classification_mode="local"))
        with pytest.raises(RuntimeError):
            await service.run()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        service = make_service()
        await service.stop()
        await service.stop()
        assert service.frame_source.released
