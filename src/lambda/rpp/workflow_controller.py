"""
Lesson workflow controller - the imperative shell around reduce_workflow_event.

Each public method turns a user action into an event, runs the reducer,
persists the new state, executes the emitted commands and feeds any follow-up
event (a generation result or failure) back into the reducer. Generation
calls block the caller but not the controller: the lock only covers
reduce-and-save, so a trigger that arrives while a stage runs (from another
thread or a re-entrant callback) sees the running stage and is ignored, and
debounced draft writes report their status meanwhile.
"""

import logging
import threading
from typing import Callable, List, Optional, Sequence, Tuple

from rpp.command_executor import execute_command
from rpp.config import WorkflowSettings
from rpp.core.commands import GenerateAssessmentCommand, GenerateObjectivesCommand, GenerateScenarioCommand
from rpp.core.errors import WorkflowValidationError
from rpp.core.lesson_models import LessonInput, TagCategory
from rpp.core.state import LogicResult
from rpp.core.workflow_models import (
    DraftRestored,
    EditTarget,
    ExportRequested,
    LessonInputChanged,
    ObjectiveEdited,
    PathStep,
    ResetRequested,
    ResultFieldEdited,
    SaveStatus,
    SaveStatusChanged,
    StageName,
    StageRequested,
    ValueTagToggled,
    WorkflowEventType,
    WorkflowState,
)
from rpp.draft_store import DebouncedDraftWriter, DraftStore
from rpp.logic.workflow import create_initial_workflow_state, reduce_workflow_event

logger = logging.getLogger(__name__)

# Returns the state as persisted (e.g. with a bumped revision), or None
StateSaver = Callable[[WorkflowState], Optional[WorkflowState]]

_GENERATION_COMMANDS = (GenerateObjectivesCommand, GenerateScenarioCommand, GenerateAssessmentCommand)


class LessonWorkflowController:
    """Drives one lesson-plan session through the three generation stages."""

    def __init__(
        self,
        effects: dict,
        state: Optional[WorkflowState] = None,
        settings: Optional[WorkflowSettings] = None,
        state_saver: Optional[StateSaver] = None,
        draft_writer: Optional[DebouncedDraftWriter] = None,
    ):
        self.effects = effects
        self.settings = settings or WorkflowSettings()
        self._state = state or create_initial_workflow_state()
        self._state_saver = state_saver
        self.draft_writer = draft_writer
        self._lock = threading.RLock()
        self.last_message: Optional[str] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    # ------------------------------------------------------------------
    # Lesson input
    # ------------------------------------------------------------------

    def restore_draft(self, store: DraftStore) -> WorkflowState:
        """Start the session from the persisted draft (or the default lesson)."""
        self.dispatch(DraftRestored(lesson_input=store.load()))
        return self._state

    def update_lesson_input(self, lesson_input: LessonInput) -> WorkflowState:
        self.dispatch(LessonInputChanged(lesson_input=lesson_input))
        return self._state

    def update_fields(self, **changes) -> WorkflowState:
        """Change individual form fields, e.g. ``update_fields(topik="Zakat")``."""
        return self.update_lesson_input(self._state.lesson_input.with_changes(**changes))

    def toggle_value_tag(self, category: TagCategory, value: str) -> WorkflowState:
        self.dispatch(ValueTagToggled(category=category, value=value))
        return self._state

    def on_save_status(self, status: SaveStatus) -> None:
        """Callback for DebouncedDraftWriter status changes."""
        self.dispatch(SaveStatusChanged(status=status))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def run_stage(self, stage: StageName) -> bool:
        """
        Run one generation stage to completion.

        Returns:
            False when the trigger was ignored because a stage is running

        Raises:
            WorkflowValidationError: If the stage's preconditions do not hold
        """
        result = self.dispatch(StageRequested(stage=stage))
        return not result.ignored

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def edit_objective(self, objective_id: str, deskripsi: str) -> WorkflowState:
        self.dispatch(ObjectiveEdited(objective_id=objective_id, deskripsi=deskripsi))
        return self._state

    def edit_result(self, target: EditTarget, path: Sequence[PathStep], value: str) -> WorkflowState:
        self.dispatch(ResultFieldEdited(target=target, path=tuple(path), value=value))
        return self._state

    # ------------------------------------------------------------------
    # Export / reset
    # ------------------------------------------------------------------

    def export_document(self) -> Tuple[str, bytes]:
        """
        Build the .docx for the current results.

        Returns:
            (filename, document bytes)

        Raises:
            WorkflowValidationError: If any of the four outputs is missing
        """
        results = self._dispatch_collect(ExportRequested())
        for command_result in results:
            if 'document' in command_result:
                return command_result['filename'], command_result['document']
        raise RuntimeError("Export produced no document")

    def reset(self) -> WorkflowState:
        self.dispatch(ResetRequested())
        return self._state

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def dispatch(self, event: WorkflowEventType) -> LogicResult:
        """Reduce ``event``, execute its commands and follow up on their events."""
        result, _ = self._reduce_and_execute(event)
        return result

    def _dispatch_collect(self, event: WorkflowEventType) -> List[dict]:
        _, command_results = self._reduce_and_execute(event)
        return command_results

    def _reduce_and_execute(self, event: WorkflowEventType) -> Tuple[LogicResult, List[dict]]:
        with self._lock:
            result = reduce_workflow_event(self._state, event, self.settings)
            if result.ui_message:
                self.last_message = result.ui_message

            if result.ignored:
                return result, []

            self._state = result.new_state
            command_results = [
                execute_command(command, self.effects)
                for command in result.commands
                if not isinstance(command, _GENERATION_COMMANDS)
            ]

            if result.rejection is not None:
                raise WorkflowValidationError(result.rejection.message, code=result.rejection.code)

            # Persist before generating so a running stage is visible
            self._save_state()
            generation_commands = [c for c in result.commands if isinstance(c, _GENERATION_COMMANDS)]

        # Generation runs unlocked: other triggers see the running stage and
        # are ignored, draft status updates still go through.
        follow_ups = []
        for command in generation_commands:
            command_result = execute_command(command, self.effects)
            command_results.append(command_result)
            if command_result.get('event') is not None:
                follow_ups.append(command_result['event'])

        for follow_up in follow_ups:
            self.dispatch(follow_up)

        return result, command_results

    def _save_state(self) -> None:
        if self._state_saver is None or not self._state.session_id:
            return
        saved = self._state_saver(self._state)
        if saved is not None:
            self._state = saved

    def flush_draft(self) -> SaveStatus:
        """Write a pending debounced draft now (end of a Lambda invocation)."""
        if self.draft_writer is None:
            return self._state.save_status
        return self.draft_writer.flush()
