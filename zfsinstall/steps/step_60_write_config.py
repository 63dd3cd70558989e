from __future__ import annotations

import logging
from pathlib import Path

from ..context import InstallCtx
from ..lib.bootconf import enable_zfs_rc, fstab_entries, write_fstab, write_loader_conf
from ..lib.env import PATHS

logger = logging.getLogger(__name__)


class WriteConfigStep:
    step_id = "60_write_config"

    def run(self, ctx: InstallCtx) -> None:
        legacy_root = ctx.root_dataset if ctx.options.legacy else None

        write_loader_conf(target_root=ctx.target_root, root_dataset=legacy_root, dry_run=ctx.dry_run)
        enable_zfs_rc(target_root=ctx.target_root, dry_run=ctx.dry_run)

        entries = fstab_entries(swap_label=ctx.swap_label, root_dataset=legacy_root)
        fstab = write_fstab(target_root=ctx.target_root, entries=entries, dry_run=ctx.dry_run)

        # zpool import writes the runtime cache file here.
        cache_dir = (Path(ctx.target_root) / PATHS.runtime_cachefile).parent
        if not ctx.dry_run:
            cache_dir.mkdir(parents=True, exist_ok=True)

        ctx.record("fstab", str(fstab) if fstab else None)
