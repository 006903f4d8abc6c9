"""
Lesson export handler Lambda - downloads the lesson plan as a Word document.

Endpoints:
- POST /lesson/sessions/{sessionId}/export - Base64 .docx body with a
  Content-Disposition filename; 400 until all four outputs exist
"""

import logging
from typing import Any, Dict

from rpp.core.errors import StateConflictError, WorkflowValidationError
from rpp.document_export import DOCX_CONTENT_TYPE
from rpp.response import document_response, error_response
from rpp.session_runtime import build_controller
from rpp.workflow_state_manager import load_workflow_state

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Build the .docx for a session's accepted results."""
    try:
        session_id = (event.get('pathParameters') or {}).get('sessionId')
        if not session_id:
            return error_response("Missing sessionId", 400)

        state = load_workflow_state(session_id)
        if state is None:
            return error_response(f"Session not found: {session_id}", 404)

        controller = build_controller(state)
        filename, document = controller.export_document()

        logger.info(f"Exported {filename} for session {session_id} ({len(document)} bytes)")
        return document_response(document, filename, DOCX_CONTENT_TYPE)

    except WorkflowValidationError as e:
        return error_response(e.message, 400, error_code=e.code)
    except StateConflictError as e:
        return error_response(str(e), 409, error_code='state_conflict')
    except Exception as e:
        logger.exception("Error in lesson export handler")
        return error_response(f"Internal server error: {str(e)}", 500)
