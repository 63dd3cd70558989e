from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.zpool import set_pool_property

logger = logging.getLogger(__name__)


class SetBootfsStep:
    step_id = "45_set_bootfs"

    def run(self, ctx: InstallCtx) -> None:
        set_pool_property(ctx.pool, "bootfs", ctx.root_dataset, dry_run=ctx.dry_run)
        ctx.record("bootfs", ctx.root_dataset)
        logger.info("Set bootfs=%s", ctx.root_dataset)
