"""
Command executor for the lesson workflow.

Executes commands emitted by the logic layer against the effects dict and
returns a result dict. Generation commands carry the follow-up event
(``*Generated`` or ``StageFailed``) under ``'event'`` so the controller can
feed it back into the reducer.
"""

import logging
from typing import Any, Callable, Dict

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
from rpp.core.errors import GenerationError, PersistError
from rpp.core.workflow_models import (
    AssessmentGenerated,
    ObjectivesGenerated,
    ScenarioGenerated,
    StageFailed,
)
from rpp.document_export import export_filename

logger = logging.getLogger(__name__)

Effects = Dict[str, Callable]


def execute_command(command: Command, effects: Effects) -> Dict[str, Any]:
    """
    Execute a command and return result.

    Args:
        command: Command to execute
        effects: Effect callables from create_effects_adapter()

    Returns:
        Dictionary with at least a 'status' key
    """
    if isinstance(command, GenerateObjectivesCommand):
        return execute_generate_objectives_command(command, effects)

    elif isinstance(command, GenerateScenarioCommand):
        return execute_generate_scenario_command(command, effects)

    elif isinstance(command, GenerateAssessmentCommand):
        return execute_generate_assessment_command(command, effects)

    elif isinstance(command, ScheduleDraftSaveCommand):
        return execute_schedule_draft_save_command(command, effects)

    elif isinstance(command, ClearDraftCommand):
        return execute_clear_draft_command(command, effects)

    elif isinstance(command, ExportDocumentCommand):
        return execute_export_document_command(command, effects)

    elif isinstance(command, ShowErrorToastCommand):
        logger.info(f"Toast [{command.error_code}]: {command.message}")
        return {'status': 'success', 'toast': command.message, 'error_code': command.error_code}

    elif isinstance(command, TrackUsageMetricCommand):
        effects['track_metric'](command.metric, command.data)
        return {'status': 'success', 'metric': command.metric}

    else:
        logger.warning(f"Unhandled command type: {command.command_name}")
        return {'status': 'skipped', 'command_type': command.command_name}


def execute_generate_objectives_command(command: GenerateObjectivesCommand, effects: Effects) -> Dict[str, Any]:
    """Stage 1 - objectives and framework (combined or sequential)."""
    try:
        components = effects['generate_initial_components'](command.lesson_input, command.strategy)
    except GenerationError as e:
        logger.error(f"Objectives generation failed: {e}", exc_info=True)
        return _stage_failed('objectives', e)
    except Exception as e:
        logger.error(f"Unexpected error generating objectives: {e}", exc_info=True)
        return _stage_failed('objectives', e)

    logger.info(f"Generated {len(components.tujuan_pembelajaran)} learning objectives")
    return {
        'status': 'success',
        'event': ObjectivesGenerated(objectives=components.objectives_only(), framework=components.kerangka),
    }


def execute_generate_scenario_command(command: GenerateScenarioCommand, effects: Effects) -> Dict[str, Any]:
    try:
        scenario = effects['generate_scenario'](command.request)
    except GenerationError as e:
        logger.error(f"Scenario generation failed: {e}", exc_info=True)
        return _stage_failed('scenario', e)
    except Exception as e:
        logger.error(f"Unexpected error generating scenario: {e}", exc_info=True)
        return _stage_failed('scenario', e)

    return {'status': 'success', 'event': ScenarioGenerated(scenario=scenario)}


def execute_generate_assessment_command(command: GenerateAssessmentCommand, effects: Effects) -> Dict[str, Any]:
    try:
        assessment = effects['generate_assessment'](command.request)
    except GenerationError as e:
        logger.error(f"Assessment generation failed: {e}", exc_info=True)
        return _stage_failed('assessment', e)
    except Exception as e:
        logger.error(f"Unexpected error generating assessment: {e}", exc_info=True)
        return _stage_failed('assessment', e)

    return {'status': 'success', 'event': AssessmentGenerated(assessment=assessment)}


def execute_schedule_draft_save_command(command: ScheduleDraftSaveCommand, effects: Effects) -> Dict[str, Any]:
    try:
        effects['schedule_draft_save'](command.lesson_input)
    except PersistError as e:
        # Write-through mode only; the debounced writer reports its own failures
        logger.error(f"Draft save failed: {e}", exc_info=True)
        return {'status': 'error', 'error': str(e)}
    return {'status': 'scheduled'}


def execute_clear_draft_command(command: ClearDraftCommand, effects: Effects) -> Dict[str, Any]:
    try:
        effects['clear_draft']()
    except PersistError as e:
        logger.error(f"Clearing draft failed: {e}", exc_info=True)
        return {'status': 'error', 'error': str(e)}
    return {'status': 'success'}


def execute_export_document_command(command: ExportDocumentCommand, effects: Effects) -> Dict[str, Any]:
    """Render the .docx; errors propagate since there is no state to fall back to."""
    document = effects['build_document'](command.bundle)
    filename = export_filename(command.bundle.lesson_input.topik)
    logger.info(f"Exported lesson plan {filename}")
    return {'status': 'success', 'document': document, 'filename': filename}


def _stage_failed(stage: str, error: Exception) -> Dict[str, Any]:
    return {
        'status': 'error',
        'error': str(error),
        'event': StageFailed(stage=stage, detail=str(error) or type(error).__name__),
    }
