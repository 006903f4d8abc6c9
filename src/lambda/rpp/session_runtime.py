"""
Per-invocation wiring of a LessonWorkflowController for the Lambda handlers.

Each request rebuilds the controller around the persisted WorkflowState:
DynamoDB state saver, draft store and debounced writer (flushed by the
handler before returning), and the effects adapter.
"""

from typing import Optional

from rpp.config import WorkflowSettings
from rpp.core.workflow_models import WorkflowState
from rpp.draft_store import DebouncedDraftWriter, DraftStore
from rpp.effects_adapter import create_effects_adapter
from rpp.generation_client import LessonGenerationClient
from rpp.workflow_controller import LessonWorkflowController, StateSaver
from rpp.workflow_state_manager import save_workflow_state


def build_controller(
    state: WorkflowState,
    settings: Optional[WorkflowSettings] = None,
    generation_client: Optional[LessonGenerationClient] = None,
    draft_store: Optional[DraftStore] = None,
    state_saver: Optional[StateSaver] = None,
) -> LessonWorkflowController:
    settings = settings or WorkflowSettings.from_env()
    store = draft_store or DraftStore.from_settings(settings.local_draft_path, settings.draft_slot_key)
    writer = DebouncedDraftWriter(store, delay_seconds=settings.debounce_seconds)

    controller = LessonWorkflowController(
        effects=create_effects_adapter(
            generation_client=generation_client,
            draft_store=store,
            draft_writer=writer,
        ),
        state=state,
        settings=settings,
        state_saver=state_saver or save_workflow_state,
        draft_writer=writer,
    )
    writer.on_status = controller.on_save_status
    return controller
