"""
Lesson workflow handler Lambda - REST API driving the three generation stages.

Endpoints:
- POST /lesson/sessions - Create a session (lesson from body or from the draft)
- GET /lesson/sessions/{sessionId} - Get workflow state
- PUT /lesson/sessions/{sessionId}/input - Replace the lesson input
- POST /lesson/sessions/{sessionId}/stages/{stage} - Run a generation stage
- PATCH /lesson/sessions/{sessionId}/results - Edit a generated result
- POST /lesson/sessions/{sessionId}/reset - Reset the session
"""

import logging
import uuid
from typing import Any, Dict, Optional

from pydantic import ValidationError

from rpp.config import WorkflowSettings
from rpp.core.errors import (
    EditPreconditionError,
    GenerationConfigError,
    StateConflictError,
    WorkflowValidationError,
)
from rpp.core.lesson_models import LessonInput
from rpp.core.workflow_models import STAGE_ORDER
from rpp.draft_store import DraftStore
from rpp.generation_client import LessonGenerationClient
from rpp.logic.workflow import create_initial_workflow_state
from rpp.response import error_response, parse_body, success_response
from rpp.session_runtime import build_controller
from rpp.workflow_state_manager import load_workflow_state, save_workflow_state

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

SESSIONS_PATH = '/lesson/sessions'
SESSION_PATH = '/lesson/sessions/{sessionId}'
INPUT_PATH = '/lesson/sessions/{sessionId}/input'
STAGE_PATH = '/lesson/sessions/{sessionId}/stages/{stage}'
RESULTS_PATH = '/lesson/sessions/{sessionId}/results'
RESET_PATH = '/lesson/sessions/{sessionId}/reset'


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for lesson workflow endpoints.

    Routes on HTTP method and the API Gateway resource template.
    """
    try:
        http_method = event.get('httpMethod', event.get('requestContext', {}).get('httpMethod', ''))
        resource = event.get('resource') or event.get('path', '')
        path_parameters = event.get('pathParameters') or {}
        session_id = path_parameters.get('sessionId')

        logger.info(f"Lesson workflow handler: {http_method} {resource}")

        if http_method == 'POST' and resource == SESSIONS_PATH:
            return create_session_handler(event)

        if not session_id:
            return error_response("Missing sessionId", 400)

        if http_method == 'GET' and resource == SESSION_PATH:
            return get_session_handler(session_id)
        elif http_method == 'PUT' and resource == INPUT_PATH:
            return update_input_handler(session_id, event)
        elif http_method == 'POST' and resource == STAGE_PATH:
            return run_stage_handler(session_id, path_parameters.get('stage'))
        elif http_method == 'PATCH' and resource == RESULTS_PATH:
            return edit_result_handler(session_id, event)
        elif http_method == 'POST' and resource == RESET_PATH:
            return reset_handler(session_id)
        else:
            return error_response(f"Unsupported method/path: {http_method} {resource}", 404)

    except WorkflowValidationError as e:
        return error_response(e.message, 400, error_code=e.code)
    except StateConflictError as e:
        return error_response(str(e), 409, error_code='state_conflict')
    except GenerationConfigError as e:
        logger.error(f"Generation is not configured: {e}")
        return error_response(str(e), 500, error_code='generation_config_error')
    except Exception as e:
        logger.exception("Error in lesson workflow handler")
        return error_response(f"Internal server error: {str(e)}", 500)


def _session_view(state, message: Optional[str] = None) -> Dict[str, Any]:
    view = state.to_view()
    if message:
        view['message'] = message
    return view


def _finish(controller) -> Dict[str, Any]:
    """Flush the pending draft write, persist state and return the view."""
    controller.flush_draft()
    state = save_workflow_state(controller.state)
    return success_response(_session_view(state, controller.last_message))


def create_session_handler(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle POST /lesson/sessions."""
    body = parse_body(event)
    session_id = str(uuid.uuid4())

    if body.get('lesson_input') is not None:
        try:
            lesson_input = LessonInput.model_validate(body['lesson_input'])
        except ValidationError as e:
            return error_response(f"Invalid lesson input: {e}", 400, error_code='validation_error')
        state = create_initial_workflow_state(lesson_input=lesson_input, session_id=session_id)
    else:
        settings = WorkflowSettings.from_env()
        store = DraftStore.from_settings(settings.local_draft_path, settings.draft_slot_key)
        state = create_initial_workflow_state(lesson_input=store.load(), session_id=session_id)

    state = save_workflow_state(state)
    logger.info(f"Created lesson workflow session {session_id}")
    return success_response(state.to_view(), 201)


def get_session_handler(session_id: str) -> Dict[str, Any]:
    """Handle GET /lesson/sessions/{sessionId}."""
    state = load_workflow_state(session_id)
    if state is None:
        return error_response(f"Session not found: {session_id}", 404)
    return success_response(state.to_view())


def update_input_handler(session_id: str, event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle PUT /lesson/sessions/{sessionId}/input."""
    state = load_workflow_state(session_id)
    if state is None:
        return error_response(f"Session not found: {session_id}", 404)

    try:
        lesson_input = LessonInput.model_validate(parse_body(event))
    except (ValueError, ValidationError) as e:
        return error_response(f"Invalid lesson input: {e}", 400, error_code='validation_error')

    controller = build_controller(state)
    controller.update_lesson_input(lesson_input)
    return _finish(controller)


def run_stage_handler(session_id: str, stage: Optional[str]) -> Dict[str, Any]:
    """
    Handle POST /lesson/sessions/{sessionId}/stages/{stage}.

    The stage runs to completion within the request. A failed stage still
    answers 200; its error is part of the returned state.
    """
    if stage not in STAGE_ORDER:
        return error_response(f"Unknown stage: {stage}. Expected one of {list(STAGE_ORDER)}", 400)

    state = load_workflow_state(session_id)
    if state is None:
        return error_response(f"Session not found: {session_id}", 404)

    controller = build_controller(state, generation_client=LessonGenerationClient())
    started = controller.run_stage(stage)
    if not started:
        return error_response(
            f"Stage '{state.active_stage}' is still running",
            409,
            error_code='stage_running',
        )
    return _finish(controller)


def edit_result_handler(session_id: str, event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle PATCH /lesson/sessions/{sessionId}/results.

    Body: ``{"target", "path", "value"}`` or
    ``{"target": "objectives", "id", "deskripsi"}``.
    """
    state = load_workflow_state(session_id)
    if state is None:
        return error_response(f"Session not found: {session_id}", 404)

    body = parse_body(event)
    target = body.get('target')
    controller = build_controller(state)

    try:
        if target == 'objectives' and 'id' in body:
            controller.edit_objective(str(body['id']), body.get('deskripsi', ''))
        else:
            if not isinstance(body.get('path'), list) or not isinstance(body.get('value'), str):
                return error_response("Edit requires 'path' (list) and 'value' (string)", 400)
            controller.edit_result(target, body['path'], body['value'])
    except ValidationError as e:
        return error_response(f"Invalid edit: {e}", 400, error_code='validation_error')
    except EditPreconditionError as e:
        return error_response(str(e), 400, error_code='edit_precondition')

    return _finish(controller)


def reset_handler(session_id: str) -> Dict[str, Any]:
    """Handle POST /lesson/sessions/{sessionId}/reset."""
    state = load_workflow_state(session_id)
    if state is None:
        return error_response(f"Session not found: {session_id}", 404)

    controller = build_controller(state)
    controller.reset()
    return _finish(controller)
