from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .command import run_cmd

logger = logging.getLogger(__name__)

ROOT_DATASET = "root"
BE_CONTAINER = "ROOT"
INITIAL_SNAPSHOT = "initial"


@dataclass(frozen=True)
class DatasetNode:
    path: str
    mountpoint: Optional[str] = None  # None: inherited from the parent
    properties: Dict[str, str] = field(default_factory=dict)

    def create_options(self) -> Dict[str, str]:
        opts: Dict[str, str] = {}
        if self.mountpoint is not None:
            opts["mountpoint"] = self.mountpoint
        opts.update(self.properties)
        return opts


_NOSUID = {"setuid": "off"}
_NOEXEC_NOSUID = {"exec": "off", "setuid": "off"}


def dataset_layout(*, legacy: bool = False) -> Tuple[DatasetNode, ...]:
    """The fixed dataset tree, parents first."""

    return (
        DatasetNode(ROOT_DATASET, "legacy" if legacy else "/"),
        DatasetNode("home", "/home", dict(_NOSUID)),
        DatasetNode("tmp", "/tmp", {"exec": "on", "setuid": "off"}),
        DatasetNode("usr", "/usr"),
        DatasetNode("usr/ports", None, dict(_NOSUID)),
        DatasetNode("usr/src", None, dict(_NOEXEC_NOSUID)),
        DatasetNode("var", "/var"),
        DatasetNode("var/audit", None, dict(_NOEXEC_NOSUID)),
        DatasetNode("var/crash", None, dict(_NOEXEC_NOSUID)),
        DatasetNode("var/log", None, dict(_NOEXEC_NOSUID)),
        DatasetNode("var/mail", None, {"atime": "on", "exec": "off", "setuid": "off"}),
        DatasetNode("var/tmp", None, {"exec": "on", "setuid": "off"}),
    )


def submounts(layout: Tuple[DatasetNode, ...]) -> List[DatasetNode]:
    """Every dataset below the root that gets mounted, in tree order.

    Children with an inherited mountpoint are included: after an import with
    -N nothing is mounted, so each one has to be mounted explicitly.
    """

    return [n for n in layout if n.path != ROOT_DATASET and n.mountpoint not in ("none", "legacy")]


def full_name(pool: str, path: str) -> str:
    return f"{pool}/{path}"


def create_dataset(pool: str, node: DatasetNode, *, dry_run: bool = False) -> None:
    argv = ["zfs", "create"]
    for key, value in node.create_options().items():
        argv += ["-o", f"{key}={value}"]
    argv.append(full_name(pool, node.path))
    run_cmd(argv, dry_run=dry_run)


def create_layout(
    pool: str,
    layout: Tuple[DatasetNode, ...],
    *,
    mount_root=None,
    dry_run: bool = False,
) -> List[str]:
    """Create every node top-down.

    mount_root, when given, is called right after the root dataset exists so
    that legacy-mounted roots are in place before children mount under them.
    """

    created: List[str] = []
    for node in layout:
        create_dataset(pool, node, dry_run=dry_run)
        created.append(full_name(pool, node.path))
        if node.path == ROOT_DATASET and mount_root is not None:
            mount_root()
    logger.info("Created %d datasets on %s", len(created), pool)
    return created


def snapshot(name: str, *, recursive: bool = False, dry_run: bool = False) -> None:
    argv = ["zfs", "snapshot"]
    if recursive:
        argv.append("-r")
    argv.append(name)
    run_cmd(argv, dry_run=dry_run)


def mount_dataset(name: str, *, dry_run: bool = False) -> None:
    run_cmd(["zfs", "mount", name], dry_run=dry_run)


def unmount_dataset(name: str, *, dry_run: bool = False) -> None:
    run_cmd(["zfs", "umount", name], dry_run=dry_run)
