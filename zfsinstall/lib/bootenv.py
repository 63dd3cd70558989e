from __future__ import annotations

import logging
from typing import Protocol

from .command import run_cmd
from .datasets import BE_CONTAINER
from .zpool import set_pool_property

logger = logging.getLogger(__name__)

DEFAULT_BE_NAME = "default"


class BootEnvironmentManager(Protocol):
    def create(self, name: str, *, source: str, dry_run: bool = False) -> None:
        ...

    def activate(self, name: str, *, dry_run: bool = False) -> None:
        ...


class ZfsBootEnvironments:
    """Boot environments as clones under ``<pool>/ROOT``, selected by bootfs.

    beadm(8) and bectl(8) look up their boot environment root from the
    running system, which is the install media here, so the target pool is
    driven with zfs(8) and zpool(8) directly.
    """

    def __init__(self, pool: str, container: str = BE_CONTAINER) -> None:
        self.pool = pool
        self.container = container

    def dataset(self, name: str) -> str:
        return f"{self.pool}/{self.container}/{name}"

    def create(self, name: str, *, source: str, dry_run: bool = False) -> None:
        origin = source.split("@", 1)[0]
        run_cmd(
            ["zfs", "clone", "-o", "canmount=noauto", "-o", "mountpoint=/", source, self.dataset(name)],
            dry_run=dry_run,
        )
        # Only the active boot environment may mount on / at boot.
        run_cmd(["zfs", "set", "canmount=noauto", origin], dry_run=dry_run)
        logger.info("Created boot environment %s from %s", self.dataset(name), source)

    def activate(self, name: str, *, dry_run: bool = False) -> None:
        set_pool_property(self.pool, "bootfs", self.dataset(name), dry_run=dry_run)
        logger.info("Activated boot environment %s", self.dataset(name))
