from __future__ import annotations

import logging
from typing import Sequence, Tuple

from .command import run_cmd
from .datasets import DatasetNode, ROOT_DATASET, full_name, mount_dataset, submounts, unmount_dataset

logger = logging.getLogger(__name__)


def mount_legacy_root(pool: str, target_root: str, *, dry_run: bool = False) -> None:
    run_cmd(["mount", "-t", "zfs", full_name(pool, ROOT_DATASET), target_root], dry_run=dry_run)


def umount_legacy_root(target_root: str, *, dry_run: bool = False) -> None:
    run_cmd(["umount", target_root], dry_run=dry_run)


def mount_legacy(
    pool: str, target_root: str, layout: Tuple[DatasetNode, ...], *, dry_run: bool = False
) -> None:
    """Mount the legacy root, then each sub-mount in tree order."""

    mount_legacy_root(pool, target_root, dry_run=dry_run)
    for node in submounts(layout):
        mount_dataset(full_name(pool, node.path), dry_run=dry_run)


def umount_legacy(
    pool: str, target_root: str, layout: Sequence[DatasetNode], *, dry_run: bool = False
) -> None:
    """Reverse of mount_legacy."""

    for node in reversed(submounts(tuple(layout))):
        unmount_dataset(full_name(pool, node.path), dry_run=dry_run)
    umount_legacy_root(target_root, dry_run=dry_run)
