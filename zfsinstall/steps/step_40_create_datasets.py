from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.datasets import create_layout, dataset_layout
from ..lib.mounts import mount_legacy_root

logger = logging.getLogger(__name__)


class CreateDatasetsStep:
    step_id = "40_create_datasets"

    def run(self, ctx: InstallCtx) -> None:
        ctx.layout = dataset_layout(legacy=ctx.options.legacy)

        mount_root = None
        if ctx.options.legacy:

            def mount_root() -> None:
                mount_legacy_root(ctx.pool, ctx.target_root, dry_run=ctx.dry_run)

        created = create_layout(ctx.pool, ctx.layout, mount_root=mount_root, dry_run=ctx.dry_run)
        ctx.record("datasets", created)
