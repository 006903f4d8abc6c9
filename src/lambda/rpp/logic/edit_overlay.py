"""Edit overlay - pure functions applying in-place edits to generated results.

Results are frozen pydantic models; an edit never mutates the stored object.
It dumps the result, replaces exactly one string leaf and re-validates into a
fresh model of the same type, so the caller gets a structure that shares
nothing mutable with the previous one.
"""

from __future__ import annotations

from typing import Any, List, Sequence, TypeVar

from pydantic import BaseModel

from rpp.core.errors import EditPreconditionError
from rpp.core.stage_models import ObjectivesResult
from rpp.core.workflow_models import PathStep

ResultT = TypeVar("ResultT", bound=BaseModel)


def apply_path_edit(result: ResultT, path: Sequence[PathStep], value: str) -> ResultT:
    """
    Replace the string leaf at ``path`` and return a new result.

    Args:
        result: Stored stage result (any stage model)
        path: Field names for object steps, integer indexes for list steps,
              e.g. ``("kegiatan_inti", "memahami", "aktivitas", 0, "deskripsi")``
        value: Replacement text

    Raises:
        EditPreconditionError: If the path does not address a string leaf
    """
    if not path:
        raise EditPreconditionError("Edit path must not be empty")
    if not isinstance(value, str):
        raise EditPreconditionError(f"Edit value must be a string, got {type(value).__name__}")

    _validate_path(result, list(path))

    data = result.model_dump()
    container: Any = data
    for step in path[:-1]:
        container = container[step]
    container[path[-1]] = value

    return type(result).model_validate(data)


def edit_objective(objectives: ObjectivesResult, objective_id: str, deskripsi: str) -> ObjectivesResult:
    """Replace ``deskripsi`` of the objective whose id matches."""
    for index, objective in enumerate(objectives.tujuan_pembelajaran):
        if objective.id == objective_id:
            return apply_path_edit(objectives, ("tujuan_pembelajaran", index, "deskripsi"), deskripsi)
    raise EditPreconditionError(f"Objective not found: {objective_id}")


def _validate_path(node: Any, path: List[PathStep]) -> None:
    """Walk the model along ``path``; every step must exist and the leaf must be text."""
    walked: List[PathStep] = []
    for step in path:
        if isinstance(node, BaseModel):
            if not isinstance(step, str) or step not in type(node).model_fields:
                raise EditPreconditionError(f"Unknown field {step!r} at {_render(walked)}")
            node = getattr(node, step)
        elif isinstance(node, (list, tuple)):
            # bool is an int subclass; reject it explicitly
            if isinstance(step, bool) or not isinstance(step, int):
                raise EditPreconditionError(f"Expected list index at {_render(walked)}, got {step!r}")
            if not 0 <= step < len(node):
                raise EditPreconditionError(
                    f"Index {step} out of range at {_render(walked)} (length {len(node)})"
                )
            node = node[step]
        else:
            raise EditPreconditionError(f"Cannot descend into scalar at {_render(walked)}")
        walked.append(step)

    if not isinstance(node, str):
        raise EditPreconditionError(f"Path {_render(walked)} does not point to a text field")


def _render(path: Sequence[PathStep]) -> str:
    return "/".join(str(step) for step in path) or "<root>"
