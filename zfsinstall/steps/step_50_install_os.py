from __future__ import annotations

import logging

from ..context import InstallCtx

logger = logging.getLogger(__name__)


class InstallOSStep:
    step_id = "50_install_os"

    def run(self, ctx: InstallCtx) -> None:
        ctx.os_installer.install(ctx.target_root, dry_run=ctx.dry_run)
        logger.info("OS installed at %s", ctx.target_root)
