from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .fstab import FstabEntry, render_fstab

logger = logging.getLogger(__name__)


def _append_setting(path: Path, line: str, *, dry_run: bool = False) -> None:
    """Append line unless the file already contains it."""

    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    if line in existing.splitlines():
        return
    if not dry_run:
        path.parent.mkdir(parents=True, exist_ok=True)
        if existing and not existing.endswith("\n"):
            existing += "\n"
        path.write_text(existing + line + "\n", encoding="utf-8")


def write_loader_conf(
    *,
    target_root: str,
    root_dataset: Optional[str] = None,
    dry_run: bool = False,
) -> None:
    """Enable the ZFS module at boot; legacy roots also need vfs.root.mountfrom."""

    cfg = Path(target_root) / "boot/loader.conf"
    _append_setting(cfg, 'zfs_load="YES"', dry_run=dry_run)
    if root_dataset:
        _append_setting(cfg, f'vfs.root.mountfrom="zfs:{root_dataset}"', dry_run=dry_run)
    logger.info("Wrote loader config: %s", str(cfg))


def enable_zfs_rc(*, target_root: str, dry_run: bool = False) -> None:
    rc = Path(target_root) / "etc/rc.conf"
    _append_setting(rc, 'zfs_enable="YES"', dry_run=dry_run)
    logger.info("Enabled zfs in %s", str(rc))


def fstab_entries(*, swap_label: Optional[str], root_dataset: Optional[str]) -> List[FstabEntry]:
    entries: List[FstabEntry] = []
    if root_dataset:
        entries.append(FstabEntry(spec=root_dataset, mountpoint="/", fstype="zfs", options="rw"))
    if swap_label:
        entries.append(FstabEntry(spec=f"/dev/{swap_label}", mountpoint="none", fstype="swap", options="sw"))
    return entries


def write_fstab(*, target_root: str, entries: List[FstabEntry], dry_run: bool = False) -> Optional[Path]:
    """Write etc/fstab; nothing is written when there are no entries."""

    if not entries:
        return None
    path = Path(target_root) / "etc/fstab"
    if dry_run:
        logger.info("Would write %s", str(path))
        return path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_fstab(entries), encoding="utf-8")
    logger.info("Wrote %s (%d entries)", str(path), len(entries))
    return path
