"""Prompt registry - resolves prompt names to text with variable substitution."""

import re
from typing import Any, Dict, List, Optional

from rpp.core.prompts.base_prompts import BASE_PROMPTS

_VARIABLE_PATTERN = re.compile(r'(?<!\{)\{([a-zA-Z_][a-zA-Z0-9_]*)\}(?!\})')


def get_prompt(
    name: str,
    variables: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Resolve a prompt by name, substituting ``{variable}`` placeholders.

    Args:
        name: Prompt name (e.g., "lesson.scenario")
        variables: Values for the placeholders in the prompt

    Returns:
        Prompt text ready to send

    Raises:
        KeyError: If the prompt is unknown or a required variable is missing
    """
    if name not in BASE_PROMPTS:
        raise KeyError(f"Prompt '{name}' not found. Available prompts: {list_prompts()}")

    template = BASE_PROMPTS[name]
    required = required_variables(name)
    if not required:
        return template

    variables = variables or {}
    missing = [var for var in required if var not in variables]
    if missing:
        raise KeyError(f"Missing variable(s) {missing} for prompt '{name}'")

    return template.format(**variables)


def required_variables(name: str) -> List[str]:
    """Placeholder names used by a prompt, sorted."""
    return sorted(set(_VARIABLE_PATTERN.findall(BASE_PROMPTS[name])))


def list_prompts() -> List[str]:
    return sorted(BASE_PROMPTS.keys())
