from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from rpp.core.lesson_models import LessonInput, TagCategory, default_lesson_input
from rpp.core.stage_models import (
    Aktivitas,
    AssessmentPackage,
    LearningFramework,
    LearningObjective,
    LearningScenario,
    ObjectivesResult,
)


StageName = Literal["objectives", "scenario", "assessment"]
StageStatus = Literal["not_started", "running", "succeeded", "failed"]
SaveStatus = Literal["unsaved", "saving", "saved"]
EditTarget = Literal["objectives", "framework", "scenario", "assessment"]
PathStep = Union[str, int]

STAGE_ORDER: Tuple[StageName, ...] = ("objectives", "scenario", "assessment")


class StageError(BaseModel):
    """User-facing error attached to the workflow state."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: str = "generation_failed"
    stage: Optional[StageName] = None
    detail: Optional[str] = None  # underlying cause, for logs/debug panels


class StageProgress(BaseModel):
    """Status of each generation stage."""

    model_config = ConfigDict(frozen=True)

    objectives: StageStatus = "not_started"
    scenario: StageStatus = "not_started"
    assessment: StageStatus = "not_started"

    def get(self, stage: StageName) -> StageStatus:
        return getattr(self, stage)

    def running_stage(self) -> Optional[StageName]:
        for stage in STAGE_ORDER:
            if self.get(stage) == "running":
                return stage
        return None


class WorkflowState(BaseModel):
    """Top-level lesson workflow state snapshot."""

    model_config = ConfigDict(frozen=False)

    session_id: Optional[str] = None
    lesson_input: LessonInput = Field(default_factory=default_lesson_input)
    objectives: Optional[ObjectivesResult] = None
    framework: Optional[LearningFramework] = None
    scenario: Optional[LearningScenario] = None
    assessment: Optional[AssessmentPackage] = None
    progress: StageProgress = Field(default_factory=StageProgress)
    error: Optional[StageError] = None
    alignment_warnings: List[str] = Field(default_factory=list)
    save_status: SaveStatus = "saved"
    # Bumped on every persisted write; guards concurrent invocations
    revision: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def active_stage(self) -> Optional[StageName]:
        return self.progress.running_stage()

    @property
    def is_loading(self) -> bool:
        return self.active_stage is not None

    @property
    def export_ready(self) -> bool:
        return None not in (self.objectives, self.framework, self.scenario, self.assessment)

    def to_view(self) -> Dict[str, object]:
        """JSON view for the browser, including derived flags."""
        view = self.model_dump(mode="json", by_alias=True)
        view["active_stage"] = self.active_stage
        view["is_loading"] = self.is_loading
        view["export_ready"] = self.export_ready
        return view


# =============================================================================
# Generation requests (payloads sent to the generation client)
# =============================================================================

class ScenarioRequest(BaseModel):
    """Lesson details plus the objectives the scenario must serve."""

    model_config = ConfigDict(frozen=True)

    lesson_input: LessonInput
    tujuan_pembelajaran: List[LearningObjective]

    def to_payload(self) -> Dict[str, object]:
        payload = self.lesson_input.to_draft_payload()
        payload["tujuan_pembelajaran"] = [o.model_dump() for o in self.tujuan_pembelajaran]
        return payload


class AssessmentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    tujuan_pembelajaran: List[LearningObjective]
    kegiatan_inti: List[Aktivitas]
    list_kbc_terpilih: List[str]
    list_dpl_terpilih: List[str]

    def to_payload(self) -> Dict[str, object]:
        return self.model_dump(mode="json")


class LessonPlanBundle(BaseModel):
    """Everything the document exporter needs; only built when all parts exist."""

    model_config = ConfigDict(frozen=True)

    lesson_input: LessonInput
    objectives: ObjectivesResult
    framework: LearningFramework
    scenario: LearningScenario
    assessment: AssessmentPackage


# =============================================================================
# Events (UI / effects → logic)
# =============================================================================

class WorkflowEvent(BaseModel):
    """Base class for events fed into the workflow reducer."""

    model_config = ConfigDict(frozen=True)

    event_type: str


class LessonInputChanged(WorkflowEvent):
    event_type: Literal["lesson_input_changed"] = "lesson_input_changed"
    lesson_input: LessonInput


class ValueTagToggled(WorkflowEvent):
    event_type: Literal["value_tag_toggled"] = "value_tag_toggled"
    category: TagCategory
    value: str


class DraftRestored(WorkflowEvent):
    event_type: Literal["draft_restored"] = "draft_restored"
    lesson_input: LessonInput


class StageRequested(WorkflowEvent):
    event_type: Literal["stage_requested"] = "stage_requested"
    stage: StageName


class ObjectivesGenerated(WorkflowEvent):
    event_type: Literal["objectives_generated"] = "objectives_generated"
    objectives: ObjectivesResult
    framework: LearningFramework


class ScenarioGenerated(WorkflowEvent):
    event_type: Literal["scenario_generated"] = "scenario_generated"
    scenario: LearningScenario


class AssessmentGenerated(WorkflowEvent):
    event_type: Literal["assessment_generated"] = "assessment_generated"
    assessment: AssessmentPackage


class StageFailed(WorkflowEvent):
    event_type: Literal["stage_failed"] = "stage_failed"
    stage: StageName
    detail: str


class ObjectiveEdited(WorkflowEvent):
    event_type: Literal["objective_edited"] = "objective_edited"
    objective_id: str
    deskripsi: str


class ResultFieldEdited(WorkflowEvent):
    event_type: Literal["result_field_edited"] = "result_field_edited"
    target: EditTarget
    path: Tuple[PathStep, ...]
    value: str


class SaveStatusChanged(WorkflowEvent):
    event_type: Literal["save_status_changed"] = "save_status_changed"
    status: SaveStatus


class ExportRequested(WorkflowEvent):
    event_type: Literal["export_requested"] = "export_requested"


class ResetRequested(WorkflowEvent):
    event_type: Literal["reset_requested"] = "reset_requested"


WorkflowEventType = Union[
    LessonInputChanged,
    ValueTagToggled,
    DraftRestored,
    StageRequested,
    ObjectivesGenerated,
    ScenarioGenerated,
    AssessmentGenerated,
    StageFailed,
    ObjectiveEdited,
    ResultFieldEdited,
    SaveStatusChanged,
    ExportRequested,
    ResetRequested,
]
