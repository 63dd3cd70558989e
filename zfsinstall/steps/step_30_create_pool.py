from __future__ import annotations

import logging
from typing import Dict

from ..context import InstallCtx
from ..lib import zpool
from ..lib.env import PATHS

logger = logging.getLogger(__name__)


class CreatePoolStep:
    step_id = "30_create_pool"

    def run(self, ctx: InstallCtx) -> None:
        opts = ctx.options

        fs_properties: Dict[str, str] = {}
        if opts.compression:
            feature_flags = zpool.uses_feature_flags(ctx.pool_version, compat=opts.compat)
            fs_properties["compression"] = "lz4" if feature_flags else "lzjb"
        if opts.fletcher4:
            fs_properties["checksum"] = "fletcher4"

        spec = zpool.PoolSpec(
            name=opts.pool,
            vdevs=zpool.assemble_vdevs(opts.groups, ctx.partitioned),
            altroot=opts.target_root,
            cachefile=PATHS.install_cachefile,
            version=ctx.pool_version,
            compat=opts.compat,
            fs_properties=fs_properties,
        )
        zpool.create_pool(spec, dry_run=ctx.dry_run)

        ctx.pool_spec = spec
        ctx.record("zpool_create", spec.create_argv())
