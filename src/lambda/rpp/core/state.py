from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rpp.core.commands import Command
from rpp.core.workflow_models import StageError, WorkflowState


class LogicResult(BaseModel):
    """Functional output from logic layer: new state + commands.

    ``rejection`` is set when the event was refused because a precondition
    did not hold; the state comes back unchanged and only a toast command is
    emitted. ``ignored`` marks events dropped on purpose (a stage is already
    running, a stale completion arrived).
    """

    model_config = ConfigDict(frozen=False)

    new_state: WorkflowState
    commands: List[Command] = Field(default_factory=list)
    ui_message: Optional[str] = None
    rejection: Optional[StageError] = None
    ignored: bool = False
