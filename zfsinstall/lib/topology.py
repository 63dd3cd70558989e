"""Redundancy topology parsing.

The command line is an ordered stream: each ``-d`` appends a device to the
open group, each ``-r`` closes the open group with a redundancy mode.
:class:`TopologyBuilder` holds that state explicitly so it can be threaded
through argument parsing (and the YAML config loader) instead of living in
module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..errors import ConfigurationError
from ..logging_utils import NOTICE

logger = logging.getLogger(__name__)


class RedundancyMode(str, Enum):
    STRIPE = "stripe"
    MIRROR = "mirror"
    RAIDZ1 = "raidz1"
    RAIDZ2 = "raidz2"
    RAIDZ3 = "raidz3"

    @classmethod
    def parse(cls, value: str) -> "RedundancyMode":
        v = value.strip().lower()
        if v == "raidz":
            return cls.RAIDZ1
        try:
            return cls(v)
        except ValueError:
            raise ConfigurationError(
                f"Unknown redundancy mode: {value!r}",
                hint="use one of: mirror, raidz1 (raidz), raidz2, raidz3",
            ) from None

    @property
    def min_devices(self) -> int:
        return MIN_DEVICES[self]


MIN_DEVICES: Dict[RedundancyMode, int] = {
    RedundancyMode.STRIPE: 1,
    RedundancyMode.MIRROR: 2,
    RedundancyMode.RAIDZ1: 3,
    RedundancyMode.RAIDZ2: 4,
    RedundancyMode.RAIDZ3: 5,
}


@dataclass(frozen=True)
class RedundancyGroup:
    mode: RedundancyMode
    devices: Tuple[str, ...]

    def to_dict(self) -> Dict[str, object]:
        return {"mode": self.mode.value, "devices": list(self.devices)}


def normalize_device(name: str) -> str:
    dev = name.strip()
    if dev.startswith("/dev/"):
        dev = dev[len("/dev/"):]
    if not dev or "/" in dev:
        raise ConfigurationError(f"Invalid device name: {name!r}")
    return dev


class TopologyBuilder:
    """Finite-state builder for the vdev topology.

    Groups are closed either by :meth:`set_mode` or by :meth:`finish`; a
    closed group is never touched again. Only one explicit mode may be used
    per run, although it may close any number of groups.
    """

    def __init__(self) -> None:
        self._open: List[str] = []
        self._groups: List[RedundancyGroup] = []
        self._seen: set[str] = set()
        self._locked_mode: Optional[RedundancyMode] = None
        self._finished = False

    def add_device(self, name: str) -> None:
        self._ensure_open()
        dev = normalize_device(name)
        if dev in self._seen:
            raise ConfigurationError(f"Device {dev} given more than once")
        self._seen.add(dev)
        self._open.append(dev)

    def set_mode(self, value: str | RedundancyMode) -> None:
        self._ensure_open()
        mode = value if isinstance(value, RedundancyMode) else RedundancyMode.parse(value)

        if not self._open:
            raise ConfigurationError(
                f"Redundancy mode {mode.value} given before any device",
                hint="list the devices of a group (-d) before its mode (-r)",
            )
        if self._locked_mode is not None and self._locked_mode != mode:
            raise ConfigurationError(
                f"Cannot combine {self._locked_mode.value} and {mode.value} groups in one pool",
                hint="all redundancy groups in a run must use the same mode",
            )

        self._close(mode)
        self._locked_mode = mode

    def finish(self) -> List[RedundancyGroup]:
        self._ensure_open()
        self._finished = True

        if self._open:
            self._close(RedundancyMode.STRIPE)

        if not self._groups:
            raise ConfigurationError("No devices given", hint="add at least one device with -d")

        if self._locked_mode is None:
            # No -r at all: the whole device list is one stripe group.
            logger.log(
                NOTICE,
                "No redundancy mode given: creating a plain stripe across %s",
                ", ".join(self._groups[0].devices),
            )

        return list(self._groups)

    def _close(self, mode: RedundancyMode) -> None:
        if len(self._open) < mode.min_devices:
            raise ConfigurationError(
                f"{mode.value} requires at least {mode.min_devices} devices, "
                f"got {len(self._open)} ({', '.join(self._open)})"
            )
        self._groups.append(RedundancyGroup(mode=mode, devices=tuple(self._open)))
        self._open = []

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError("TopologyBuilder already finished")


def parse_topology(events: List[Tuple[str, str]]) -> List[RedundancyGroup]:
    """Build groups from ``("device", name)`` / ``("mode", mode)`` events."""

    builder = TopologyBuilder()
    for kind, value in events:
        if kind == "device":
            builder.add_device(value)
        elif kind == "mode":
            builder.set_mode(value)
        else:
            raise ValueError(f"Unknown topology event: {kind!r}")
    return builder.finish()
