"""Outcome of a single plugin run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import PluginError

STAGE_CONFIGURE = "configure"
STAGE_RENDER = "render"
STAGE_DEPLOY = "deploy"
STAGE_COMPLETE = "complete"


@dataclass
class PipelineResult:
    """Record how far the pipeline got and the error that stopped it, if any."""

    stage: str = STAGE_CONFIGURE
    error: Optional[PluginError] = None
    stack_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.stage == STAGE_COMPLETE

    def exit_code(self) -> int:
        return 0 if self.succeeded else 1
