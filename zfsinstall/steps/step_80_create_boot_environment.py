from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.bootenv import DEFAULT_BE_NAME
from ..lib.datasets import BE_CONTAINER, INITIAL_SNAPSHOT, DatasetNode, create_dataset, snapshot

logger = logging.getLogger(__name__)


class CreateBootEnvironmentStep:
    step_id = "80_create_boot_environment"

    def run(self, ctx: InstallCtx) -> None:
        if ctx.options.legacy:
            logger.info("Legacy mounts: no boot environment is created")
            return

        create_dataset(ctx.pool, DatasetNode(BE_CONTAINER, "none"), dry_run=ctx.dry_run)

        source = f"{ctx.root_dataset}@{INITIAL_SNAPSHOT}"
        snapshot(source, recursive=True, dry_run=ctx.dry_run)
        ctx.boot_envs.create(DEFAULT_BE_NAME, source=source, dry_run=ctx.dry_run)
        ctx.record("boot_environment", f"{ctx.pool}/{BE_CONTAINER}/{DEFAULT_BE_NAME}")
