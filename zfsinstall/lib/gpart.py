"""Thin wrappers around gpart(8), glabel(8) and dd(1).

The parsers below are pinned to the plain-text output of FreeBSD's tools;
see tests/test_gpart.py for the sample outputs they are expected to accept.
"""

from __future__ import annotations

import logging
import os
import re
import stat
from typing import Dict, Optional

from ..errors import OperationError
from .command import run_cmd
from .env import PATHS, SECTOR_SIZE

logger = logging.getLogger(__name__)

# "ada0p2 added" (optionally followed by ", but partition is not aligned ...")
_ADDED_RE = re.compile(r"^(?P<provider>\S+) added\b", re.MULTILINE)

# "gptid/<uuid>  N/A  ada0p2"
_GLABEL_RE = re.compile(r"^(?P<label>\S+)\s+\S+\s+(?P<provider>\S+)\s*$")


def device_path(device: str) -> str:
    return f"/dev/{device}"


def is_disk_device(device: str) -> bool:
    """Return True if /dev/<device> exists and is a disk device node."""

    try:
        st = os.stat(device_path(device))
    except OSError:
        return False
    return stat.S_ISCHR(st.st_mode) or stat.S_ISBLK(st.st_mode)


def has_partition_table(device: str) -> bool:
    r = run_cmd(["gpart", "show", device], check=False)
    return r.returncode == 0


def parse_added_provider(output: str) -> str:
    m = _ADDED_RE.search(output or "")
    if not m:
        raise OperationError(f"Unexpected gpart add output: {output.strip()!r}")
    return m.group("provider")


def parse_glabel_status(output: str) -> Dict[str, str]:
    """Map provider (e.g. ``ada0p2``) to its ``gptid/...`` label."""

    labels: Dict[str, str] = {}
    for line in (output or "").splitlines():
        m = _GLABEL_RE.match(line.strip())
        if not m:
            continue
        label = m.group("label")
        if label.startswith("gptid/"):
            labels[m.group("provider")] = label
    return labels


def create_gpt(device: str, *, dry_run: bool = False) -> None:
    run_cmd(["gpart", "create", "-s", "gpt", device], dry_run=dry_run)


def add_partition(
    device: str,
    *,
    gpt_type: str,
    index: Optional[int] = None,
    offset: Optional[int] = None,
    size: Optional[int] = None,
    align: bool = False,
    dry_run: bool = False,
) -> str:
    """Add a partition and return the provider name gpart reports.

    offset and size are in sectors; size=None consumes the remaining space.
    """

    argv = ["gpart", "add", "-t", gpt_type]
    if index is not None:
        argv += ["-i", str(index)]
    if offset is not None:
        argv += ["-b", str(offset)]
    if size is not None:
        argv += ["-s", str(size)]
    if align:
        argv += ["-a", "4k"]
    argv.append(device)

    r = run_cmd(argv, dry_run=dry_run)
    if dry_run:
        return f"{device}p{index}" if index is not None else device
    return parse_added_provider(r.stdout)


def resolve_label(provider: str, *, dry_run: bool = False) -> str:
    """Resolve a provider such as ``ada0p3`` to its stable ``gptid/...`` label."""

    if dry_run:
        return provider

    r = run_cmd(["glabel", "status", "-s"])
    label = parse_glabel_status(r.stdout).get(provider)
    if not label:
        raise OperationError(
            f"Unable to determine GPT label for {provider}",
            hint="check that kern.geom.label.gptid.enable is set to 1",
        )
    return label


def wipe_sectors(device: str, *, offset: int, count: int, dry_run: bool = False) -> None:
    run_cmd(
        [
            "dd",
            "if=/dev/zero",
            f"of={device_path(device)}",
            f"bs={SECTOR_SIZE}",
            f"count={count}",
            f"oseek={offset}",
        ],
        dry_run=dry_run,
    )


def install_bootcode(device: str, *, index: int = 1, dry_run: bool = False) -> None:
    run_cmd(
        ["gpart", "bootcode", "-b", PATHS.pmbr, "-p", PATHS.gptzfsboot, "-i", str(index), device],
        dry_run=dry_run,
    )
