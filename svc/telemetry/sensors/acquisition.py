# telemetry/sensors/acquisition.py
from __future__ import annotations
import os
import select
import time
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .formatter import decode_sample, format_reading
from .interface import SensorDescriptor
from ..logs import LOOP_LOGGER, TRACE

logger = logging.getLogger(LOOP_LOGGER)

# Largest textual reading we expect from a sensor attribute, e.g. "-10250\n"
RAW_SAMPLE_SIZE = 7

_OPEN_FLAGS = os.O_RDONLY | os.O_NONBLOCK

PublishFn = Callable[[SensorDescriptor, str], None]


class AcquisitionError(RuntimeError):
    """A failure the acquisition loop cannot continue past."""


class SensorHangupError(AcquisitionError):
    """A monitored device handle reported POLLHUP."""


class SensorPollError(AcquisitionError):
    """A monitored device handle reported POLLERR."""


class PollWaitError(AcquisitionError):
    """The multiplexed wait itself failed."""


class AcquisitionLoop:
    """
    Samples every configured sensor once per cycle.

    A cycle opens each device file fresh, waits on all of them with one shared
    timeout, publishes a payload for each handle that became readable and closes
    the handles again. Sensors that cannot be opened or read are skipped for the
    cycle; a hangup or error flag on any handle, or a failing wait, ends the loop
    with an AcquisitionError.
    """

    def __init__(
        self,
        descriptors: Sequence[SensorDescriptor],
        publish: PublishFn,
        poll_interval_ms: Optional[int] = None,
        poller_factory: Optional[Callable[[], Any]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not descriptors:
            raise ValueError("AcquisitionLoop needs at least one sensor")
        self.descriptors = tuple(descriptors)
        self.poll_interval_ms = (
            poll_interval_ms if poll_interval_ms is not None else self.descriptors[0].poll_interval_ms
        )
        self._publish = publish
        self._poller_factory = poller_factory or select.poll
        self._clock = clock
        self.cycles = 0

    def run(self) -> None:
        """Poll forever. Only returns by raising."""
        logger.log(TRACE, "Poll Loop Starting")
        while True:
            self.run_cycle()

    def run_cycle(self) -> List[str]:
        """Run one open/wait/drain cycle and return the payloads it published."""
        handles = self._open_handles()
        try:
            return self._wait_and_dispatch(handles)
        finally:
            self._close_handles(handles)
            self.cycles += 1
            logger.log(TRACE, f"cycle {self.cycles} done")

    # --- cycle phases ------------------------------------------------------

    def _open_handles(self) -> List[Optional[int]]:
        handles: List[Optional[int]] = []
        for i, descriptor in enumerate(self.descriptors):
            path = descriptor.device_path
            try:
                fd = os.open(path, _OPEN_FLAGS)
            except OSError as e:
                logger.warning(f"Could not open {path} for {descriptor.name}: {e}")
                handles.append(None)
                continue
            logger.debug(f"fds[{i}] opened {descriptor.bus_address}")
            handles.append(fd)
        return handles

    def _wait_and_dispatch(self, handles: List[Optional[int]]) -> List[str]:
        poller = self._poller_factory()
        for fd in handles:
            if fd is not None:
                poller.register(fd, select.POLLIN)

        try:
            events = poller.poll(self.poll_interval_ms)
        except OSError as e:
            raise PollWaitError(f"Poll wait failed: {e}") from e
        logger.debug(f"ret {len(events)}")

        if events:
            return self._drain_ready(poller, handles, dict(events))
        self._handle_timeout(poller, handles)
        return []

    def _drain_ready(
        self, poller: Any, handles: List[Optional[int]], revents: Dict[int, int]
    ) -> List[str]:
        payloads: List[str] = []
        for descriptor, fd in zip(self.descriptors, handles):
            if fd is None:
                continue
            mask = revents.get(fd, 0)
            if mask & select.POLLIN:
                logger.log(TRACE, f"Read from Device: {descriptor.name}")
                try:
                    raw = os.read(fd, RAW_SAMPLE_SIZE)
                except OSError as e:
                    logger.error(f"Read Error on {descriptor.name}: {e}")
                    continue
                logger.debug(f"readret {len(raw)}")

                payload = format_reading(descriptor, raw, now=self._clock())
                self._publish(descriptor, payload)
                payloads.append(payload)
                # retired until the next open phase
                poller.unregister(fd)
            elif mask & select.POLLHUP:
                raise SensorHangupError(f"Hangup on {descriptor.name} ({descriptor.device_path})")
            elif mask & select.POLLERR:
                raise SensorPollError(f"Poll Error on {descriptor.name} ({descriptor.device_path})")
            elif mask & select.POLLNVAL:
                logger.error(f"Invalid handle for {descriptor.name}, skipping this cycle")
        return payloads

    def _handle_timeout(self, poller: Any, handles: List[Optional[int]]) -> None:
        for descriptor, fd in zip(self.descriptors, handles):
            logger.warning(f"Timed Out! {descriptor.name}")
            if fd is None:
                continue
            poller.modify(fd, select.POLLIN)
            # diagnostic only, never published
            try:
                raw = os.read(fd, RAW_SAMPLE_SIZE)
            except OSError as e:
                logger.warning(f"Timeout read failed for {descriptor.name}: {e}")
                continue
            logger.warning(f"Timeout read value for {descriptor.name}: {decode_sample(raw)!r}")

    def _close_handles(self, handles: List[Optional[int]]) -> None:
        for fd in handles:
            if fd is None:
                continue
            try:
                os.close(fd)
            except OSError as e:
                logger.debug(f"close({fd}) failed: {e}")
