"""
Lesson draft handler Lambda - REST API for the persisted lesson form.

Endpoints:
- GET /lesson/draft - Load the draft (default lesson when none is stored)
  plus the form's option lists
- PUT /lesson/draft - Save the draft
- DELETE /lesson/draft - Clear the draft
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from rpp.config import WorkflowSettings
from rpp.core.errors import PersistError
from rpp.core.lesson_models import LessonInput, form_options
from rpp.draft_store import DraftStore
from rpp.response import error_response, parse_body, success_response

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def get_draft_store() -> DraftStore:
    settings = WorkflowSettings.from_env()
    return DraftStore.from_settings(settings.local_draft_path, settings.draft_slot_key)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Route draft requests by HTTP method."""
    try:
        http_method = event.get('httpMethod', event.get('requestContext', {}).get('httpMethod', ''))
        logger.info(f"Lesson draft handler: {http_method}")

        store = get_draft_store()

        if http_method == 'GET':
            return success_response({
                'lesson_input': store.load().to_draft_payload(),
                'options': form_options(),
            })
        elif http_method == 'PUT':
            return save_draft_handler(store, event)
        elif http_method == 'DELETE':
            store.clear()
            return success_response({'cleared': True})
        else:
            return error_response(f"Unsupported method: {http_method}", 405)

    except PersistError as e:
        logger.error(f"Draft storage error: {e}", exc_info=True)
        return error_response(str(e), 503, error_code='persist_error')
    except Exception as e:
        logger.exception("Error in lesson draft handler")
        return error_response(f"Internal server error: {str(e)}", 500)


def save_draft_handler(store: DraftStore, event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle PUT /lesson/draft."""
    try:
        lesson_input = LessonInput.model_validate(parse_body(event))
    except (ValueError, ValidationError) as e:
        return error_response(f"Invalid lesson draft: {e}", 400, error_code='validation_error')

    try:
        store.save(lesson_input)
    except PersistError as e:
        # The client keeps its in-memory copy and shows the draft as unsaved
        logger.error(f"Draft not saved: {e}", exc_info=True)
        return error_response(str(e), 503, error_code='persist_error')

    return success_response({'lesson_input': lesson_input.to_draft_payload(), 'save_status': 'saved'})
