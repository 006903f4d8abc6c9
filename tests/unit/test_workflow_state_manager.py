"""
Unit tests for workflow state persistence.

Tests serialization to the DynamoDB item layout and load/save against a
mocked table.
"""

import json
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

# Add Lambda source to path
lambda_path = Path(__file__).parent.parent.parent / "src" / "lambda"
sys.path.insert(0, str(lambda_path))

from rpp.core.errors import StateConflictError
from rpp.logic.workflow import create_initial_workflow_state
from rpp.workflow_state_manager import (
    item_to_workflow_state,
    load_workflow_state,
    save_workflow_state,
    workflow_state_to_item,
)


@pytest.fixture
def finished_state(zakat_lesson, initial_components, scenario, assessment):
    state = create_initial_workflow_state(lesson_input=zakat_lesson, session_id="sess-1")
    return state.model_copy(update={
        'objectives': initial_components.objectives_only(),
        'framework': initial_components.kerangka,
        'scenario': scenario,
        'assessment': assessment,
        'progress': state.progress.model_copy(update={
            'objectives': 'succeeded', 'scenario': 'succeeded', 'assessment': 'running',
        }),
    })


class TestSerialization:
    """Test WorkflowState <-> item conversion."""

    def test_item_layout(self, finished_state):
        item = workflow_state_to_item(finished_state)

        assert item['session_id'] == "sess-1"
        assert item['active_stage'] == "assessment"
        assert item['revision'] == 0
        assert isinstance(item['ttl'], int)
        assert json.loads(item['state_json'])['lesson_input']['topik'] == "Zakat"

    def test_round_trip(self, finished_state):
        restored = item_to_workflow_state(workflow_state_to_item(finished_state))

        assert restored == finished_state
        assert restored.active_stage == "assessment"


class TestLoadSave:
    """Test DynamoDB access."""

    @patch('rpp.workflow_state_manager.get_table')
    def test_load_missing(self, mock_get_table):
        mock_get_table.return_value.get_item.return_value = {}
        assert load_workflow_state("missing") is None

    @patch('rpp.workflow_state_manager.get_table')
    def test_save_then_load(self, mock_get_table, finished_state):
        table = MagicMock()
        mock_get_table.return_value = table

        saved = save_workflow_state(finished_state)
        table.get_item.return_value = {'Item': table.put_item.call_args.kwargs['Item']}

        assert saved == finished_state.model_copy(update={'revision': 1})
        assert load_workflow_state("sess-1") == saved
        table.get_item.assert_called_once_with(Key={'session_id': "sess-1"})

    def test_save_requires_session_id(self):
        with pytest.raises(ValueError):
            save_workflow_state(create_initial_workflow_state())

    @patch('rpp.workflow_state_manager.get_table')
    def test_save_is_conditional_on_revision(self, mock_get_table, finished_state):
        table = MagicMock()
        mock_get_table.return_value = table
        state = finished_state.model_copy(update={'revision': 4})

        saved = save_workflow_state(state)

        kwargs = table.put_item.call_args.kwargs
        assert kwargs['Item']['revision'] == 5
        assert kwargs['ConditionExpression'] == 'attribute_not_exists(session_id) OR #rev = :expected'
        assert kwargs['ExpressionAttributeValues'] == {':expected': 4}
        assert saved.revision == 5

    @patch('rpp.workflow_state_manager.get_table')
    def test_failed_condition_raises_conflict(self, mock_get_table, finished_state):
        mock_get_table.return_value.put_item.side_effect = ClientError(
            {'Error': {'Code': 'ConditionalCheckFailedException', 'Message': 'The conditional request failed'}},
            'PutItem',
        )

        with pytest.raises(StateConflictError):
            save_workflow_state(finished_state)

    @patch('rpp.workflow_state_manager.get_table')
    def test_other_client_errors_propagate(self, mock_get_table, finished_state):
        mock_get_table.return_value.put_item.side_effect = ClientError(
            {'Error': {'Code': 'ProvisionedThroughputExceededException', 'Message': 'slow down'}},
            'PutItem',
        )

        with pytest.raises(ClientError):
            save_workflow_state(finished_state)
