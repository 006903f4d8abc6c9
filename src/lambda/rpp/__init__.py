"""
Shared modules for the AKD lesson-plan (RPP) Lambda functions

Note: This __init__.py does not eagerly import modules so that importing
rpp.logic (pure functions) never pulls in boto3 clients. Import directly:
  from rpp.logic.workflow import reduce_workflow_event
  from rpp.workflow_controller import LessonWorkflowController
  from rpp.draft_store import DraftStore
"""

__all__ = [
    'reduce_workflow_event',
    'LessonWorkflowController',
    'DraftStore',
    'DebouncedDraftWriter',
    'LessonGenerationClient',
    'build_lesson_plan_document',
]
