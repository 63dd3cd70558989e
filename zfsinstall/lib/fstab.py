from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class FstabEntry:
    spec: str
    mountpoint: str
    fstype: str
    options: str
    dump: int = 0
    passno: int = 0


def render_fstab(entries: Iterable[FstabEntry]) -> str:
    lines = ["# Device\tMountpoint\tFStype\tOptions\tDump\tPass#"]
    for e in entries:
        lines.append(f"{e.spec}\t{e.mountpoint}\t{e.fstype}\t{e.options}\t{e.dump}\t{e.passno}")
    return "\n".join(lines) + "\n"
