from __future__ import annotations
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import pytest

from telemetry.sensors.interface import SensorDescriptor


class FakeSysfs:
    """A directory laid out like /sys/bus holding sensor attribute files."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def add(self, input_type: str, address: str, kind: str, value: str) -> Path:
        device_dir = self.root / input_type / "devices" / address
        device_dir.mkdir(parents=True, exist_ok=True)
        path = device_dir / kind
        path.write_text(value)
        return path

    def descriptor(
        self, name: str, address: str, kind: str = "temperature", input_type: str = "w1"
    ) -> SensorDescriptor:
        return SensorDescriptor(
            name=name,
            module="beehive",
            bus_address=address,
            measurement_type=kind,
            input_type=input_type,
            poll_interval_ms=50,
            bus_root=str(self.root),
        )


class FakePoller:
    """Stands in for select.poll(); `respond` decides which registered fds fire."""

    def __init__(self, respond: Callable[[List[int]], List[Tuple[int, int]]]) -> None:
        self.respond = respond
        self.registered: Dict[int, int] = {}
        self.unregistered: List[int] = []
        self.modified: List[int] = []
        self.timeouts: List[int] = []

    def register(self, fd: int, mask: int) -> None:
        self.registered[fd] = mask

    def modify(self, fd: int, mask: int) -> None:
        self.registered[fd] = mask
        self.modified.append(fd)

    def unregister(self, fd: int) -> None:
        del self.registered[fd]
        self.unregistered.append(fd)

    def poll(self, timeout: int) -> List[Tuple[int, int]]:
        self.timeouts.append(timeout)
        return self.respond(list(self.registered))


class PollerFactory:
    """Hands out a fresh FakePoller per cycle and remembers them."""

    def __init__(self, respond: Callable[[List[int]], List[Tuple[int, int]]]) -> None:
        self.respond = respond
        self.pollers: List[FakePoller] = []

    def __call__(self) -> FakePoller:
        poller = FakePoller(self.respond)
        self.pollers.append(poller)
        return poller


@pytest.fixture
def sysfs(tmp_path) -> FakeSysfs:
    return FakeSysfs(tmp_path / "bus")


@pytest.fixture
def published() -> List[Tuple[str, str]]:
    return []


@pytest.fixture
def publish(published):
    def _publish(descriptor: SensorDescriptor, payload: str) -> None:
        published.append((descriptor.name, payload))
    return _publish
