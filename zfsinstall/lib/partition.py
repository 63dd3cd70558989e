from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import ConfigurationError, PreconditionError
from . import gpart
from .env import SECTOR_SIZE

logger = logging.getLogger(__name__)

BOOT_OFFSET = 40
BOOT_SIZE = 472
# Wiped after the boot partition (and after swap) so stale ZFS/UFS labels
# left on a previously used disk are not picked up.
WIPE_SECTORS = 560
# 4 KiB in 512-byte sectors.
ALIGN_SECTORS = 8

ROLE_BOOT = "boot"
ROLE_SWAP = "swap"
ROLE_POOL = "pool"

GPT_TYPES = {
    ROLE_BOOT: "freebsd-boot",
    ROLE_SWAP: "freebsd-swap",
    ROLE_POOL: "freebsd-zfs",
}

_SIZE_RE = re.compile(r"^(?P<num>\d+)\s*(?P<unit>[kmgt]?)(?:i?b)?$", re.IGNORECASE)
_UNITS = {"": 1, "k": 1 << 10, "m": 1 << 20, "g": 1 << 30, "t": 1 << 40}


def parse_size(value: str) -> int:
    """Parse ``512M``/``2G``/``1073741824`` into a sector count (rounded up)."""

    m = _SIZE_RE.match(str(value).strip())
    if not m:
        raise ConfigurationError(f"Invalid size: {value!r}", hint="use e.g. 512M, 2G or a byte count")
    size_bytes = int(m.group("num")) * _UNITS[m.group("unit").lower()]
    if size_bytes <= 0:
        raise ConfigurationError(f"Size must be positive: {value!r}")
    return -(-size_bytes // SECTOR_SIZE)


def align_up(sectors: int, boundary: int = ALIGN_SECTORS) -> int:
    return -(-sectors // boundary) * boundary


@dataclass(frozen=True)
class PartitionSpec:
    role: str
    index: int
    offset: int
    size: Optional[int]  # None: rest of the disk

    @property
    def gpt_type(self) -> str:
        return GPT_TYPES[self.role]


@dataclass(frozen=True)
class PartitionPlan:
    device: str
    partitions: Tuple[PartitionSpec, ...]
    wipe_offsets: Tuple[int, ...]
    align: bool = False

    def get(self, role: str) -> Optional[PartitionSpec]:
        return next((p for p in self.partitions if p.role == role), None)


@dataclass(frozen=True)
class PartitionedDevice:
    device: str
    pool_label: str
    swap_label: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"device": self.device, "pool_label": self.pool_label, "swap_label": self.swap_label}


def plan_partitions(
    device: str,
    *,
    swap_sectors: Optional[int] = None,
    pool_sectors: Optional[int] = None,
    align: bool = False,
) -> PartitionPlan:
    """Compute the GPT layout for one device.

    Layout (512-byte sectors):
    - boot: fixed at 40, 472 sectors (gptzfsboot)
    - swap: optional, right after boot
    - pool: the rest of the disk, or pool_sectors
    """

    parts: List[PartitionSpec] = [PartitionSpec(ROLE_BOOT, 1, BOOT_OFFSET, BOOT_SIZE)]
    offset = BOOT_OFFSET + BOOT_SIZE
    wipes = [offset]

    if swap_sectors:
        size = align_up(swap_sectors) if align else swap_sectors
        parts.append(PartitionSpec(ROLE_SWAP, len(parts) + 1, offset, size))
        offset += size
        wipes.append(offset)

    parts.append(PartitionSpec(ROLE_POOL, len(parts) + 1, offset, pool_sectors))

    return PartitionPlan(device=device, partitions=tuple(parts), wipe_offsets=tuple(wipes), align=align)


def check_device(device: str) -> None:
    """Fail unless device is a disk with no partition table yet."""

    if not gpart.is_disk_device(device):
        raise PreconditionError(
            f"{gpart.device_path(device)} is not a disk device",
            hint="check the device name with 'geom disk list'",
        )
    if gpart.has_partition_table(device):
        raise PreconditionError(
            f"{device} already has a partition table",
            hint=f"destroy it first with 'gpart destroy -F {device}' if the data is not needed",
        )


def apply_partition_plan(plan: PartitionPlan, *, dry_run: bool = False) -> PartitionedDevice:
    """Write the plan to disk and return the stable labels it produced."""

    device = plan.device
    logger.info("Partitioning %s: %s", device, ", ".join(p.role for p in plan.partitions))

    gpart.create_gpt(device, dry_run=dry_run)

    boot = plan.get(ROLE_BOOT)
    gpart.add_partition(
        device,
        gpt_type=boot.gpt_type,
        index=boot.index,
        offset=boot.offset,
        size=boot.size,
        dry_run=dry_run,
    )

    for wipe_offset in plan.wipe_offsets:
        gpart.wipe_sectors(device, offset=wipe_offset, count=WIPE_SECTORS, dry_run=dry_run)

    swap_label = None
    swap = plan.get(ROLE_SWAP)
    if swap is not None:
        provider = gpart.add_partition(
            device,
            gpt_type=swap.gpt_type,
            index=swap.index,
            offset=swap.offset,
            size=swap.size,
            align=plan.align,
            dry_run=dry_run,
        )
        swap_label = gpart.resolve_label(provider, dry_run=dry_run)

    pool = plan.get(ROLE_POOL)
    provider = gpart.add_partition(
        device,
        gpt_type=pool.gpt_type,
        index=pool.index,
        offset=pool.offset,
        size=pool.size,
        align=plan.align,
        dry_run=dry_run,
    )
    pool_label = gpart.resolve_label(provider, dry_run=dry_run)

    gpart.install_bootcode(device, index=boot.index, dry_run=dry_run)

    logger.info("Partitioned %s (pool=%s, swap=%s)", device, pool_label, swap_label)
    return PartitionedDevice(device=device, pool_label=pool_label, swap_label=swap_label)
