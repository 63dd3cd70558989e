"""OS bootstrap collaborator.

The installer only needs *something* that fills the mounted target root.
:class:`TarballInstaller` extracts the standard distribution sets from a
local directory or URL; anything with the same ``install`` method can be
passed in instead.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Protocol, Sequence

from ..errors import PreconditionError
from .command import run_cmd

logger = logging.getLogger(__name__)

DEFAULT_SETS = ("base.txz", "kernel.txz")


class OSInstaller(Protocol):
    def install(self, target_root: str, *, dry_run: bool = False) -> None:
        ...


def is_url(source: str) -> bool:
    return source.split("://", 1)[0] in {"http", "https", "ftp"} and "://" in source


class TarballInstaller:
    def __init__(self, source: str, sets: Sequence[str] = DEFAULT_SETS) -> None:
        self.source = source
        self.sets = tuple(sets)

    def check(self) -> None:
        if is_url(self.source):
            return
        missing = [s for s in self.sets if not (Path(self.source) / s).exists()]
        if missing:
            raise PreconditionError(
                f"Distribution files missing in {self.source}: {', '.join(missing)}"
            )

    def install(self, target_root: str, *, dry_run: bool = False) -> None:
        if is_url(self.source):
            with tempfile.TemporaryDirectory(prefix="zfsinstall-") as tmp:
                for name in self.sets:
                    local = str(Path(tmp) / name)
                    run_cmd(["fetch", "-o", local, f"{self.source.rstrip('/')}/{name}"], dry_run=dry_run)
                    self._extract(local, target_root, dry_run=dry_run)
        else:
            for name in self.sets:
                self._extract(str(Path(self.source) / name), target_root, dry_run=dry_run)
        logger.info("Extracted %s into %s", ", ".join(self.sets), target_root)

    @staticmethod
    def _extract(archive: str, target_root: str, *, dry_run: bool = False) -> None:
        run_cmd(["tar", "-xpf", archive, "-C", target_root], dry_run=dry_run)
