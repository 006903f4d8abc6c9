"""
Workflow state manager - DynamoDB persistence for WorkflowState.

The whole state is stored as one JSON string attribute next to the key and
a TTL, so nested stage results never hit DynamoDB's float/Decimal rules.
Separate Lambda invocations of the same session see the same stage statuses,
which is what keeps "only one stage running" true across requests. Writes
are conditional on the revision the writer last saw, so two invocations
cannot both start a stage and a reset is not overwritten by a late result.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from rpp.config import AWS_REGION, WORKFLOW_STATE_TTL_SECONDS, WORKFLOW_TABLE_NAME
from rpp.core.errors import StateConflictError
from rpp.core.workflow_models import WorkflowState

logger = logging.getLogger(__name__)

dynamodb = boto3.resource('dynamodb', region_name=AWS_REGION)


def get_table():
    """Get DynamoDB table for workflow state."""
    return dynamodb.Table(WORKFLOW_TABLE_NAME)


def workflow_state_to_item(state: WorkflowState) -> Dict[str, Any]:
    """Convert WorkflowState to a DynamoDB item."""
    return {
        'session_id': state.session_id or '',
        'state_json': state.model_dump_json(),
        'active_stage': state.active_stage or '',
        'updated_at': state.updated_at.isoformat(),
        'revision': state.revision,
        'ttl': int(datetime.now(timezone.utc).timestamp()) + WORKFLOW_STATE_TTL_SECONDS,
    }


def item_to_workflow_state(item: Dict[str, Any]) -> WorkflowState:
    state = WorkflowState.model_validate(json.loads(item['state_json']))
    if not state.session_id:
        state = state.model_copy(update={'session_id': item.get('session_id')})
    return state


def load_workflow_state(session_id: str) -> Optional[WorkflowState]:
    """
    Load WorkflowState from DynamoDB.

    Returns None if the session is unknown (or expired).
    """
    try:
        response = get_table().get_item(Key={'session_id': session_id})
    except Exception as e:
        logger.error(f"Error loading workflow state {session_id}: {e}", exc_info=True)
        raise

    if 'Item' not in response:
        logger.warning(f"Workflow state not found: {session_id}")
        return None
    return item_to_workflow_state(response['Item'])


def save_workflow_state(state: WorkflowState) -> WorkflowState:
    """
    Create or replace the state record of ``state.session_id``.

    Returns:
        The saved state, with its revision bumped

    Raises:
        StateConflictError: If the stored record has moved past ``state.revision``
    """
    if not state.session_id:
        raise ValueError("Cannot save workflow state without a session_id")

    saved = state.model_copy(update={'revision': state.revision + 1})
    try:
        get_table().put_item(
            Item=workflow_state_to_item(saved),
            ConditionExpression='attribute_not_exists(session_id) OR #rev = :expected',
            ExpressionAttributeNames={'#rev': 'revision'},
            ExpressionAttributeValues={':expected': state.revision},
        )
    except ClientError as e:
        if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
            logger.warning(f"Workflow state {state.session_id} changed since revision {state.revision}")
            raise StateConflictError(
                f"Session {state.session_id} was changed by another request"
            ) from e
        logger.error(f"Error saving workflow state {state.session_id}: {e}", exc_info=True)
        raise
    except Exception as e:
        logger.error(f"Error saving workflow state {state.session_id}: {e}", exc_info=True)
        raise

    logger.info(
        f"Saved workflow state: {state.session_id} "
        f"(revision={saved.revision}, active_stage={saved.active_stage})"
    )
    return saved
