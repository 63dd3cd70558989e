from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.partition import apply_partition_plan

logger = logging.getLogger(__name__)


class PartitionStep:
    step_id = "20_partition"

    def run(self, ctx: InstallCtx) -> None:
        # One device at a time; the first failure stops the run.
        for plan in ctx.plans:
            ctx.partitioned.append(apply_partition_plan(plan, dry_run=ctx.dry_run))

        ctx.record("partitions", [p.to_dict() for p in ctx.partitioned])
        if ctx.options.swap_size and len(ctx.partitioned) > 1:
            logger.info(
                "Swap partitions on %s are not used; only %s is added to fstab",
                ", ".join(p.device for p in ctx.partitioned[1:]),
                ctx.swap_label,
            )
