"""Prompt management for the lesson-plan generation calls.

All prompt text lives in base_prompts and is resolved by name.
"""

from rpp.core.prompts.prompt_registry import get_prompt, list_prompts

__all__ = ["get_prompt", "list_prompts"]
