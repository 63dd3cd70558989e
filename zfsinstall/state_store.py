"""Run journal.

The installer never resumes from the journal; it is written so the operator
can see which step failed and what had already been created.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) == "yaml":
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "YAML journal requested but PyYAML is not available. Use a .json journal path."
            ) from e
        p.write_text(yaml.safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("Journal written to %s", str(p))


def new_state(options: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "version": 1,
        "options": options,
        "execution": {
            "current_step": None,
            "completed_steps": [],
            "decisions": {},
            "errors": [],
        },
    }


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    completed = state.setdefault("execution", {}).setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)
