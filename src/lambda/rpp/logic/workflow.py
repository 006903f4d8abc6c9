"""Lesson workflow logic layer - pure functions driving the three generation stages.

Events go in, a LogicResult (new state + commands) comes out. Nothing here
talks to AWS; the controller executes the emitted commands and feeds the
outcome back in as new events.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from rpp.config import WorkflowSettings
from rpp.core.commands import (
    ClearDraftCommand,
    Command,
    ExportDocumentCommand,
    GenerateAssessmentCommand,
    GenerateObjectivesCommand,
    GenerateScenarioCommand,
    ScheduleDraftSaveCommand,
    ShowErrorToastCommand,
    TrackUsageMetricCommand,
)
from rpp.core.errors import EditPreconditionError
from rpp.core.lesson_models import LessonInput, default_lesson_input
from rpp.core.stage_models import AssessmentPackage, LearningScenario, ObjectivesResult
from rpp.core.state import LogicResult
from rpp.core.workflow_models import (
    STAGE_ORDER,
    AssessmentGenerated,
    AssessmentRequest,
    DraftRestored,
    ExportRequested,
    LessonInputChanged,
    LessonPlanBundle,
    ObjectiveEdited,
    ObjectivesGenerated,
    ResetRequested,
    ResultFieldEdited,
    SaveStatusChanged,
    ScenarioGenerated,
    ScenarioRequest,
    StageError,
    StageFailed,
    StageName,
    StageRequested,
    ValueTagToggled,
    WorkflowEventType,
    WorkflowState,
)
from rpp.logic.edit_overlay import apply_path_edit, edit_objective

logger = logging.getLogger(__name__)


STAGE_FAILURE_MESSAGES: Dict[StageName, str] = {
    "objectives": "Gagal menghasilkan Tujuan & Kerangka Pembelajaran. Silakan coba lagi.",
    "scenario": "Gagal menghasilkan Skenario Kegiatan. Silakan coba lagi.",
    "assessment": "Gagal menghasilkan Paket Asesmen. Silakan coba lagi.",
}

STAGE_PRECONDITION_MESSAGES: Dict[StageName, str] = {
    "scenario": "Harap hasilkan Tujuan Pembelajaran terlebih dahulu.",
    "assessment": "Harap hasilkan Tujuan Pembelajaran dan Skenario Kegiatan terlebih dahulu.",
}

EXPORT_INCOMPLETE_MESSAGE = "Harap hasilkan semua komponen RPP sebelum mengekspor."
EXPORT_BUSY_MESSAGE = "Tunggu hingga proses pembuatan selesai sebelum mengekspor."

# Stage results cleared when a stage (re)enters running or fails
_STAGE_RESULT_FIELDS: Dict[StageName, Tuple[str, ...]] = {
    "objectives": ("objectives", "framework"),
    "scenario": ("scenario",),
    "assessment": ("assessment",),
}


def create_initial_workflow_state(
    lesson_input: Optional[LessonInput] = None,
    session_id: Optional[str] = None,
) -> WorkflowState:
    """Return the canonical empty workflow state."""
    return WorkflowState(
        session_id=session_id,
        lesson_input=lesson_input or default_lesson_input(),
    )


def reduce_workflow_event(
    state: WorkflowState,
    event: WorkflowEventType,
    settings: Optional[WorkflowSettings] = None,
) -> LogicResult:
    """Main reducer that routes incoming workflow events to pure handlers."""
    settings = settings or WorkflowSettings()

    if isinstance(event, LessonInputChanged):
        return update_lesson_input(state, event.lesson_input)

    if isinstance(event, ValueTagToggled):
        return update_lesson_input(state, state.lesson_input.with_toggled_tag(event.category, event.value))

    if isinstance(event, DraftRestored):
        return restore_draft(state, event.lesson_input)

    if isinstance(event, StageRequested):
        return request_stage(state, event.stage, settings)

    if isinstance(event, ObjectivesGenerated):
        return handle_objectives_generated(state, event)

    if isinstance(event, ScenarioGenerated):
        return handle_scenario_generated(state, event.scenario)

    if isinstance(event, AssessmentGenerated):
        return handle_assessment_generated(state, event.assessment, settings)

    if isinstance(event, StageFailed):
        return handle_stage_failed(state, event.stage, event.detail)

    if isinstance(event, ObjectiveEdited):
        return handle_objective_edited(state, event, settings)

    if isinstance(event, ResultFieldEdited):
        return handle_result_field_edited(state, event, settings)

    if isinstance(event, SaveStatusChanged):
        return LogicResult(new_state=state.model_copy(update={"save_status": event.status}))

    if isinstance(event, ExportRequested):
        return request_export(state)

    if isinstance(event, ResetRequested):
        return reset_workflow(state)

    raise ValueError(f"Unhandled workflow event: {event}")


# =============================================================================
# Lesson input
# =============================================================================

def update_lesson_input(state: WorkflowState, lesson_input: LessonInput) -> LogicResult:
    """Replace the lesson form and schedule a debounced draft write.

    Stage results are left alone: they are only invalidated when a stage is
    re-run.
    """
    new_state = _touch(state, lesson_input=lesson_input, save_status="unsaved")
    return LogicResult(
        new_state=new_state,
        commands=[ScheduleDraftSaveCommand(lesson_input=lesson_input)],
    )


def restore_draft(state: WorkflowState, lesson_input: LessonInput) -> LogicResult:
    """Load the persisted draft into a fresh session; nothing to write back."""
    return LogicResult(new_state=_touch(state, lesson_input=lesson_input, save_status="saved"))


# =============================================================================
# Stage transitions
# =============================================================================

def stage_precondition_error(state: WorkflowState, stage: StageName) -> Optional[StageError]:
    """Return the validation error blocking ``stage``, or None if it may run."""
    if stage == "objectives":
        missing = state.lesson_input.missing_required_fields()
        if missing:
            return StageError(
                message=f"Harap lengkapi {', '.join(missing)} terlebih dahulu.",
                code="validation_error",
                stage=stage,
            )
        return None

    required = STAGE_ORDER[: STAGE_ORDER.index(stage)]
    for upstream in required:
        if state.progress.get(upstream) != "succeeded":
            return StageError(
                message=STAGE_PRECONDITION_MESSAGES[stage],
                code="validation_error",
                stage=stage,
            )
    return None


def request_stage(state: WorkflowState, stage: StageName, settings: WorkflowSettings) -> LogicResult:
    """
    Start a generation stage.

    - Ignored while any stage is running (not queued).
    - Rejected when its upstream stages have not succeeded.
    - Otherwise marks it running, clears every downstream result/status and
      emits the generation command.
    """
    running = state.active_stage
    if running is not None:
        logger.info(f"Ignoring request for stage '{stage}': stage '{running}' is still running")
        return LogicResult(new_state=state, ignored=True)

    rejection = stage_precondition_error(state, stage)
    if rejection is not None:
        logger.info(f"Rejected stage '{stage}': {rejection.message}")
        return LogicResult(
            new_state=state,
            commands=[ShowErrorToastCommand(message=rejection.message, error_code=rejection.code)],
            ui_message=rejection.message,
            rejection=rejection,
        )

    stage_index = STAGE_ORDER.index(stage)
    downstream = STAGE_ORDER[stage_index + 1:]

    progress_update = {stage: "running"}
    result_update: Dict[str, Any] = {}
    for later in downstream:
        progress_update[later] = "not_started"
        for field in _STAGE_RESULT_FIELDS[later]:
            result_update[field] = None

    new_state = _touch(
        state,
        progress=state.progress.model_copy(update=progress_update),
        error=None,
        alignment_warnings=[],
        **result_update,
    )

    return LogicResult(
        new_state=new_state,
        commands=[
            _build_generation_command(new_state, stage, settings),
            TrackUsageMetricCommand(
                metric="lesson.stage_requested",
                data={"stage": stage, "invalidated": list(downstream)},
            ),
        ],
        ui_message=None,
    )


def _build_generation_command(state: WorkflowState, stage: StageName, settings: WorkflowSettings) -> Command:
    if stage == "objectives":
        return GenerateObjectivesCommand(
            lesson_input=state.lesson_input,
            strategy=settings.objectives_strategy,
        )

    if stage == "scenario":
        return GenerateScenarioCommand(
            request=ScenarioRequest(
                lesson_input=state.lesson_input,
                tujuan_pembelajaran=state.objectives.tujuan_pembelajaran,
            )
        )

    return GenerateAssessmentCommand(request=build_assessment_request(state))


def build_assessment_request(state: WorkflowState) -> AssessmentRequest:
    """Objectives + flattened core activities + the two value-tag sets."""
    return AssessmentRequest(
        tujuan_pembelajaran=state.objectives.tujuan_pembelajaran,
        kegiatan_inti=state.scenario.core_activities(),
        list_kbc_terpilih=state.lesson_input.list_kbc_terpilih,
        list_dpl_terpilih=state.lesson_input.list_dpl_terpilih,
    )


def handle_objectives_generated(state: WorkflowState, event: ObjectivesGenerated) -> LogicResult:
    if not _is_running(state, "objectives"):
        return _stale_completion(state, "objectives")

    objectives = event.objectives
    # Combined-strategy results carry the framework too; store objectives on their own
    if type(objectives) is not ObjectivesResult:
        objectives = ObjectivesResult(
            tujuan_pembelajaran=objectives.tujuan_pembelajaran,
            ref_cp=objectives.ref_cp,
            alokasi_waktu=objectives.alokasi_waktu,
        )

    new_state = _touch(
        state,
        objectives=objectives,
        framework=event.framework,
        progress=state.progress.model_copy(update={"objectives": "succeeded"}),
        error=None,
    )
    return _stage_succeeded(new_state, "objectives", {"objective_count": len(objectives.tujuan_pembelajaran)})


def handle_scenario_generated(state: WorkflowState, scenario: LearningScenario) -> LogicResult:
    if not _is_running(state, "scenario"):
        return _stale_completion(state, "scenario")

    new_state = _touch(
        state,
        scenario=scenario,
        progress=state.progress.model_copy(update={"scenario": "succeeded"}),
        error=None,
    )
    return _stage_succeeded(new_state, "scenario", {"activity_count": len(scenario.core_activities())})


def handle_assessment_generated(
    state: WorkflowState,
    assessment: AssessmentPackage,
    settings: WorkflowSettings,
) -> LogicResult:
    if not _is_running(state, "assessment"):
        return _stale_completion(state, "assessment")

    warnings: List[str] = []
    if settings.alignment_check != "off":
        dangling = find_dangling_objective_refs(assessment, state.objectives)
        warnings = [
            f"{item}: {', '.join(ids)} tidak terdapat pada Tujuan Pembelajaran"
            for item, ids in dangling
        ]
        if warnings and settings.alignment_check == "reject":
            return handle_stage_failed(
                state,
                "assessment",
                "Alignment check failed: " + "; ".join(warnings),
            )

    new_state = _touch(
        state,
        assessment=assessment,
        progress=state.progress.model_copy(update={"assessment": "succeeded"}),
        error=None,
        alignment_warnings=warnings,
    )
    return _stage_succeeded(new_state, "assessment", {"alignment_warnings": len(warnings)})


def handle_stage_failed(state: WorkflowState, stage: StageName, detail: str) -> LogicResult:
    """
    Mark ``stage`` failed with its user-facing message.

    Earlier stages keep their results; the failed stage's own result is
    cleared so nothing half-applied or outdated stays visible.
    """
    if not _is_running(state, stage):
        return _stale_completion(state, stage)

    message = STAGE_FAILURE_MESSAGES[stage]
    error = StageError(message=message, code="generation_failed", stage=stage, detail=detail)

    new_state = _touch(
        state,
        progress=state.progress.model_copy(update={stage: "failed"}),
        error=error,
        **{field: None for field in _STAGE_RESULT_FIELDS[stage]},
    )

    return LogicResult(
        new_state=new_state,
        commands=[
            ShowErrorToastCommand(message=message, error_code=error.code),
            TrackUsageMetricCommand(metric="lesson.stage_failed", data={"stage": stage}),
        ],
        ui_message=message,
    )


def find_dangling_objective_refs(
    assessment: AssessmentPackage,
    objectives: Optional[ObjectivesResult],
) -> List[Tuple[str, List[str]]]:
    """Alignment rows whose ``tp_terukur`` ids are not objective ids."""
    known = set(objectives.objective_ids()) if objectives else set()
    dangling: List[Tuple[str, List[str]]] = []
    for row in assessment.validasi_keselarasan:
        missing = [tp for tp in row.tp_terukur if tp not in known]
        if missing:
            dangling.append((row.item_asesmen, missing))
    return dangling


def _stage_succeeded(new_state: WorkflowState, stage: StageName, data: Dict[str, Any]) -> LogicResult:
    return LogicResult(
        new_state=new_state,
        commands=[TrackUsageMetricCommand(metric="lesson.stage_succeeded", data={"stage": stage, **data})],
    )


def _stale_completion(state: WorkflowState, stage: StageName) -> LogicResult:
    logger.warning(f"Dropping completion for stage '{stage}' which is not running")
    return LogicResult(new_state=state, ignored=True)


def _is_running(state: WorkflowState, stage: StageName) -> bool:
    return state.progress.get(stage) == "running"


# =============================================================================
# Edits
# =============================================================================

def handle_objective_edited(
    state: WorkflowState,
    event: ObjectiveEdited,
    settings: WorkflowSettings,
) -> LogicResult:
    try:
        if state.objectives is None:
            raise EditPreconditionError("No objectives to edit")
        objectives = edit_objective(state.objectives, event.objective_id, event.deskripsi)
    except EditPreconditionError as e:
        return _edit_rejected(state, e, settings)

    return LogicResult(new_state=_touch(state, objectives=objectives))


def handle_result_field_edited(
    state: WorkflowState,
    event: ResultFieldEdited,
    settings: WorkflowSettings,
) -> LogicResult:
    try:
        current = getattr(state, event.target)
        if current is None:
            raise EditPreconditionError(f"No {event.target} result to edit")
        updated = apply_path_edit(current, event.path, event.value)
    except EditPreconditionError as e:
        return _edit_rejected(state, e, settings)

    return LogicResult(new_state=_touch(state, **{event.target: updated}))


def _edit_rejected(state: WorkflowState, error: EditPreconditionError, settings: WorkflowSettings) -> LogicResult:
    if settings.strict_edits:
        raise error
    logger.warning(f"Ignoring edit: {error}")
    return LogicResult(new_state=state, ignored=True)


# =============================================================================
# Export / reset
# =============================================================================

def request_export(state: WorkflowState) -> LogicResult:
    """Emit the export command once all four stage outputs are present."""
    if state.is_loading:
        return _export_rejected(state, EXPORT_BUSY_MESSAGE, "export_busy")
    if not state.export_ready:
        return _export_rejected(state, EXPORT_INCOMPLETE_MESSAGE, "export_incomplete")

    bundle = LessonPlanBundle(
        lesson_input=state.lesson_input,
        objectives=state.objectives,
        framework=state.framework,
        scenario=state.scenario,
        assessment=state.assessment,
    )
    return LogicResult(
        new_state=state,
        commands=[
            ExportDocumentCommand(bundle=bundle),
            TrackUsageMetricCommand(metric="lesson.exported", data={"topik": state.lesson_input.topik}),
        ],
    )


def _export_rejected(state: WorkflowState, message: str, code: str) -> LogicResult:
    rejection = StageError(message=message, code=code)
    return LogicResult(
        new_state=state,
        commands=[ShowErrorToastCommand(message=message, error_code=code)],
        ui_message=message,
        rejection=rejection,
    )


def reset_workflow(state: WorkflowState) -> LogicResult:
    """Back to the default lesson with no results; the stored draft is removed."""
    new_state = create_initial_workflow_state(session_id=state.session_id)
    new_state = new_state.model_copy(update={"revision": state.revision})

    return LogicResult(
        new_state=new_state,
        commands=[
            ClearDraftCommand(),
            TrackUsageMetricCommand(
                metric="lesson.workflow_reset",
                data={"had_running_stage": state.active_stage is not None},
            ),
        ],
    )


def _touch(state: WorkflowState, **update: Any) -> WorkflowState:
    update["updated_at"] = datetime.utcnow()
    return state.model_copy(update=update)
