from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    target_root: str = "/mnt"
    state_default: str = "/var/lib/zfsinstall/state.json"
    log_default: str = "/var/log/zfsinstall.log"
    # Installation-scoped pool cache, replaced at re-import.
    install_cachefile: str = "/tmp/zpool.cache"
    # Relative to the target root.
    runtime_cachefile: str = "boot/zfs/zpool.cache"
    pmbr: str = "/boot/pmbr"
    gptzfsboot: str = "/boot/gptzfsboot"


PATHS = Paths()

DEFAULT_POOL_NAME = "zroot"

SECTOR_SIZE = 512
