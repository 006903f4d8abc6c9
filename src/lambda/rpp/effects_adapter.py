"""
Effects Adapter Layer
Binds the workflow's side effects (generation, draft persistence, export,
telemetry) to concrete implementations so the command executor only sees a
dict of callables. Tests pass their own callables in place of AWS-backed ones.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from rpp.core.lesson_models import LessonInput
from rpp.document_export import build_lesson_plan_document
from rpp.draft_store import DebouncedDraftWriter, DraftStore
from rpp.generation_client import LessonGenerationClient

logger = logging.getLogger(__name__)


def create_effects_adapter(
    generation_client: Optional[LessonGenerationClient] = None,
    draft_store: Optional[DraftStore] = None,
    draft_writer: Optional[DebouncedDraftWriter] = None,
    build_document: Callable[..., bytes] = build_lesson_plan_document,
) -> Dict[str, Callable]:
    """
    Create the effects dictionary used by the command executor.

    Keys:
        generate_initial_components(lesson_input, strategy) -> InitialComponents
        generate_scenario(request) -> LearningScenario
        generate_assessment(request) -> AssessmentPackage
        schedule_draft_save(lesson_input) -> None
        clear_draft() -> None
        build_document(bundle) -> bytes
        track_metric(metric, data) -> None
    """
    store = draft_store
    clients: Dict[str, LessonGenerationClient] = {}
    if generation_client is not None:
        clients["default"] = generation_client

    def client() -> LessonGenerationClient:
        # Built on first generation so export-only callers need no model config
        if "default" not in clients:
            clients["default"] = LessonGenerationClient()
        return clients["default"]

    def generate_initial_components(lesson_input: LessonInput, strategy: str):
        return client().generate_initial_components(lesson_input, strategy)

    def generate_scenario(request):
        return client().generate_scenario(request)

    def generate_assessment(request):
        return client().generate_assessment(request)

    def schedule_draft_save(lesson_input: LessonInput) -> None:
        if draft_writer is not None:
            draft_writer.schedule(lesson_input)
        elif store is not None:
            # No writer configured: write through immediately
            store.save(lesson_input)
        else:
            logger.debug("No draft store configured; draft not persisted")

    def clear_draft() -> None:
        if draft_writer is not None:
            draft_writer.cancel()
        if store is not None:
            store.clear()

    def track_metric(metric: str, data: Dict[str, Any]) -> None:
        logger.info(f"metric {metric} {json.dumps(data, ensure_ascii=False, default=str)}")

    return {
        'generate_initial_components': generate_initial_components,
        'generate_scenario': generate_scenario,
        'generate_assessment': generate_assessment,
        'schedule_draft_save': schedule_draft_save,
        'clear_draft': clear_draft,
        'build_document': build_document,
        'track_metric': track_metric,
    }
