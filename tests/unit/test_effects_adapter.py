"""
Unit tests for the effects adapter.

Tests that each effect reaches the generation client, draft writer or
draft store it was built with.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add Lambda source to path
lambda_path = Path(__file__).parent.parent.parent / "src" / "lambda"
sys.path.insert(0, str(lambda_path))

from rpp.effects_adapter import create_effects_adapter


class TestCreateEffectsAdapter:
    """Test effect wiring."""

    def test_has_all_effects(self):
        effects = create_effects_adapter(generation_client=MagicMock())
        assert set(effects) == {
            'generate_initial_components',
            'generate_scenario',
            'generate_assessment',
            'schedule_draft_save',
            'clear_draft',
            'build_document',
            'track_metric',
        }

    def test_generation_delegates_to_client(self, zakat_lesson):
        client = MagicMock()
        effects = create_effects_adapter(generation_client=client)

        effects['generate_initial_components'](zakat_lesson, "combined")
        effects['generate_scenario']("scenario-request")
        effects['generate_assessment']("assessment-request")

        client.generate_initial_components.assert_called_once_with(zakat_lesson, "combined")
        client.generate_scenario.assert_called_once_with("scenario-request")
        client.generate_assessment.assert_called_once_with("assessment-request")

    @patch('rpp.effects_adapter.LessonGenerationClient')
    def test_client_built_on_first_generation(self, mock_client_class, zakat_lesson):
        effects = create_effects_adapter()
        mock_client_class.assert_not_called()

        effects['generate_scenario']("a")
        effects['generate_assessment']("b")

        mock_client_class.assert_called_once_with()
        mock_client_class.return_value.generate_assessment.assert_called_once_with("b")

    def test_draft_save_uses_writer(self, zakat_lesson):
        store, writer = MagicMock(), MagicMock()
        effects = create_effects_adapter(generation_client=MagicMock(), draft_store=store, draft_writer=writer)

        effects['schedule_draft_save'](zakat_lesson)

        writer.schedule.assert_called_once_with(zakat_lesson)
        store.save.assert_not_called()

    def test_draft_save_writes_through_without_writer(self, zakat_lesson):
        store = MagicMock()
        effects = create_effects_adapter(generation_client=MagicMock(), draft_store=store)

        effects['schedule_draft_save'](zakat_lesson)

        store.save.assert_called_once_with(zakat_lesson)

    def test_clear_draft_cancels_pending_write(self):
        store, writer = MagicMock(), MagicMock()
        effects = create_effects_adapter(generation_client=MagicMock(), draft_store=store, draft_writer=writer)

        effects['clear_draft']()

        writer.cancel.assert_called_once_with()
        store.clear.assert_called_once_with()

    def test_custom_document_builder(self):
        builder = MagicMock(return_value=b"x")
        effects = create_effects_adapter(generation_client=MagicMock(), build_document=builder)
        assert effects['build_document']("bundle") == b"x"
