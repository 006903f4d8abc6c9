from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from rpp.core.lesson_models import LessonInput
from rpp.core.workflow_models import (
    AssessmentRequest,
    LessonPlanBundle,
    ScenarioRequest,
)


class Command(BaseModel):
    """Marker base class for commands emitted by the logic layer."""

    model_config = ConfigDict(frozen=True)

    @property
    def command_name(self) -> str:
        return self.__class__.__name__


# Generation Commands
class GenerateObjectivesCommand(Command):
    """Generate objectives, ref_cp, alokasi_waktu and the learning framework."""

    lesson_input: LessonInput
    strategy: Literal["combined", "sequential"] = "combined"


class GenerateScenarioCommand(Command):
    """Generate the Awal / Inti / Penutup activity scenario."""

    request: ScenarioRequest


class GenerateAssessmentCommand(Command):
    """Generate the diagnostic / formative / summative assessment package."""

    request: AssessmentRequest


# Draft Commands
class ScheduleDraftSaveCommand(Command):
    """Persist the lesson form after the debounce window."""

    lesson_input: LessonInput


class ClearDraftCommand(Command):
    """Remove the persisted lesson draft."""


# Export Commands
class ExportDocumentCommand(Command):
    """Render the accepted lesson plan into a .docx document."""

    bundle: LessonPlanBundle


# UI / telemetry Commands
class ShowErrorToastCommand(Command):
    """Display a UI toast or snackbar error via effects layer."""

    message: str
    error_code: Optional[str] = None


class TrackUsageMetricCommand(Command):
    """Send analytics event related to lesson-plan usage."""

    metric: str
    data: Dict[str, Any] = Field(default_factory=dict)
