"""
Runtime configuration for the lesson-plan workflow.

Values come from environment variables (set on the Lambda functions, or a
local shell). Module-level constants are read once at import;
WorkflowSettings bundles the knobs the controller needs so tests can build
their own instead of patching the environment.
"""

import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


ObjectivesStrategy = Literal["combined", "sequential"]
AlignmentCheck = Literal["off", "flag", "reject"]

AWS_REGION = os.getenv("AWS_REGION", "us-east-1")

# DynamoDB tables
DRAFT_TABLE_NAME = os.getenv("DYNAMODB_LESSON_DRAFTS_TABLE_NAME", "akd-dev-lesson-drafts")
WORKFLOW_TABLE_NAME = os.getenv("DYNAMODB_LESSON_WORKFLOW_TABLE_NAME", "akd-dev-lesson-workflow")
WORKFLOW_STATE_TTL_SECONDS = 7 * 24 * 60 * 60  # 7 days

# Draft slot: one key per browser session/teacher
DRAFT_SLOT_KEY = os.getenv("LESSON_DRAFT_KEY", "akd-lesson-draft")
# When set, drafts go to a local JSON file instead of DynamoDB (local dev)
LOCAL_DRAFT_PATH = os.getenv("LESSON_DRAFT_PATH")
DEFAULT_DEBOUNCE_MS = 1500


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class WorkflowSettings(BaseModel):
    """Behavioural switches for the lesson workflow controller."""

    model_config = ConfigDict(frozen=True)

    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0)
    objectives_strategy: ObjectivesStrategy = "combined"
    alignment_check: AlignmentCheck = "flag"
    # Development builds fail loudly on bad edit paths; production ignores them
    strict_edits: bool = False
    draft_slot_key: str = DRAFT_SLOT_KEY
    local_draft_path: Optional[str] = None

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(cls) -> "WorkflowSettings":
        return cls(
            debounce_ms=int(os.getenv("DRAFT_DEBOUNCE_MS", str(DEFAULT_DEBOUNCE_MS))),
            objectives_strategy=os.getenv("OBJECTIVES_STRATEGY", "combined"),
            alignment_check=os.getenv("ALIGNMENT_CHECK", "flag"),
            strict_edits=_env_flag("STRICT_EDITS"),
            draft_slot_key=DRAFT_SLOT_KEY,
            local_draft_path=LOCAL_DRAFT_PATH,
        )
