from __future__ import annotations

import logging
from pathlib import Path

from ..context import InstallCtx
from ..errors import OperationError
from ..lib import zpool
from ..lib.env import PATHS
from ..lib.mounts import mount_legacy, umount_legacy

logger = logging.getLogger(__name__)


class ReimportStep:
    """Export and re-import the pool with its runtime cache file.

    The pool was created with an installation-scoped cache file; importing it
    again rewrites the persisted configuration into the installed system.

    A legacy root is not mounted by the import itself, so in legacy mode the
    pool is imported with -N and the tree is mounted by hand, root first.
    The cache file is written again once the installed root sits at the
    target, otherwise it would land in the live system's mount point.
    """

    step_id = "70_reimport"

    def run(self, ctx: InstallCtx) -> None:
        legacy = ctx.options.legacy
        cachefile = str(Path(ctx.target_root) / PATHS.runtime_cachefile)

        if legacy:
            umount_legacy(ctx.pool, ctx.target_root, ctx.layout, dry_run=ctx.dry_run)

        zpool.export_pool(ctx.pool, dry_run=ctx.dry_run)

        try:
            zpool.import_pool(
                ctx.pool,
                altroot=ctx.target_root,
                cachefile=cachefile,
                mount=not legacy,
                dry_run=ctx.dry_run,
            )
        except OperationError as e:
            logger.error("Pool %s is left exported; do not export it again", ctx.pool)
            no_mount = " -N" if legacy else ""
            raise OperationError(
                f"Re-import of {ctx.pool} failed: {e.message}",
                argv=e.argv,
                returncode=e.returncode,
                stderr=e.stderr,
                hint=(
                    f"pool {ctx.pool} is exported; import it by hand with "
                    f"'zpool import{no_mount} -o altroot={ctx.target_root} -o cachefile={cachefile} {ctx.pool}' "
                    "and do not export it again"
                ),
            ) from e

        if legacy:
            mount_legacy(ctx.pool, ctx.target_root, ctx.layout, dry_run=ctx.dry_run)

        zpool.set_pool_property(ctx.pool, "cachefile", cachefile, dry_run=ctx.dry_run)

        if not ctx.dry_run:
            bootfs = zpool.get_pool_property(ctx.pool, "bootfs")
            if bootfs != ctx.root_dataset:
                raise OperationError(
                    f"bootfs is {bootfs!r} after re-import, expected {ctx.root_dataset!r}"
                )

        ctx.record("cachefile", cachefile)
        logger.info("Re-imported %s with cachefile=%s", ctx.pool, cachefile)
