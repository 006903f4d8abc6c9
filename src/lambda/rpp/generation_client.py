"""
Lesson generation client - the three Bedrock-backed generation operations.

Each operation renders its prompt, calls Claude, pulls the JSON object out
of the reply and validates it against the stage model. Any failure on the way
(service error, empty reply, no JSON, schema violation) is raised as a single
GenerationError so the controller has one thing to catch.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ValidationError

from rpp.core.errors import GenerationError
from rpp.core.lesson_models import LessonInput
from rpp.core.prompts import get_prompt
from rpp.core.stage_models import (
    AssessmentPackage,
    InitialComponents,
    LearningFramework,
    LearningScenario,
    ObjectivesResult,
)
from rpp.core.workflow_models import AssessmentRequest, ScenarioRequest

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
InvokeFn = Callable[..., Dict[str, Any]]

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object in a model reply.

    Accepts a bare object, a fenced ```json block, or prose around a single
    ``{...}`` span.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    stripped = text.strip()
    if not stripped:
        raise ValueError("Empty response from model")

    fenced = _FENCED_JSON.search(stripped)
    if fenced:
        candidate = fenced.group(1)
    elif stripped.startswith("{"):
        candidate = stripped
    else:
        brace = _BARE_OBJECT.search(stripped)
        if not brace:
            raise ValueError("No JSON object detected in model response")
        candidate = brace.group(0)

    parsed = json.loads(candidate)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class LessonGenerationClient:
    """Objectives/framework, scenario and assessment generation via Bedrock."""

    def __init__(
        self,
        invoke_fn: Optional[InvokeFn] = None,
        model_id: Optional[str] = None,
        max_tokens: int = 8192,
        temperature: float = 0.4,
    ):
        if invoke_fn is None:
            from rpp.bedrock_client import invoke_claude, resolve_model_id

            invoke_fn = invoke_claude
            # Missing model configuration fails here, not on the first stage
            model_id = resolve_model_id(model_id)

        self._invoke = invoke_fn
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate_initial_components(self, lesson_input: LessonInput, strategy: str = "combined") -> InitialComponents:
        """
        Stage 1: objectives, ref_cp, alokasi_waktu and the learning framework.

        ``combined`` asks for everything in one call; ``sequential`` asks for
        the objectives first and then a framework built on them.
        """
        request = lesson_input.to_draft_payload()

        if strategy == "sequential":
            objectives = self._generate("lesson.objectives", request, ObjectivesResult)
            framework = self._generate(
                "lesson.framework",
                {**request, "tujuan_pembelajaran": [o.model_dump() for o in objectives.tujuan_pembelajaran]},
                LearningFramework,
            )
            return InitialComponents(
                tujuan_pembelajaran=objectives.tujuan_pembelajaran,
                ref_cp=objectives.ref_cp,
                alokasi_waktu=objectives.alokasi_waktu,
                kerangka=framework,
            )

        return self._generate("lesson.initial_components", request, InitialComponents)

    def generate_scenario(self, request: ScenarioRequest) -> LearningScenario:
        """Stage 2: Kegiatan Awal / Inti (Memahami, Mengaplikasi, Merefleksi) / Penutup."""
        return self._generate("lesson.scenario", request.to_payload(), LearningScenario)

    def generate_assessment(self, request: AssessmentRequest) -> AssessmentPackage:
        return self._generate("lesson.assessment", request.to_payload(), AssessmentPackage)

    def _generate(self, prompt_name: str, request: Dict[str, Any], model: Type[ModelT]) -> ModelT:
        prompt = get_prompt(
            prompt_name,
            {
                "request_json": json.dumps(request, ensure_ascii=False, indent=2),
                "schema_json": json.dumps(model.model_json_schema(), ensure_ascii=False),
            },
        )

        try:
            response = self._invoke(
                messages=[{"role": "user", "content": prompt}],
                system=get_prompt("lesson.system"),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                model_id=self.model_id,
            )
        except (ClientError, BotoCoreError, ValueError) as e:
            raise GenerationError(f"Generation service error: {e}", operation=prompt_name) from e

        text = response.get("content") or ""
        usage = response.get("usage", {})
        logger.info(
            f"{prompt_name}: received {len(text)} chars "
            f"(input_tokens={usage.get('input_tokens', 0)}, output_tokens={usage.get('output_tokens', 0)})"
        )

        try:
            data = extract_json_object(text)
        except ValueError as e:
            logger.warning(f"{prompt_name}: unparseable response preview: {text[:300]!r}")
            raise GenerationError(f"Could not parse model response: {e}", operation=prompt_name) from e

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise GenerationError(
                f"Model response does not match {model.__name__}: {e.error_count()} validation error(s)",
                operation=prompt_name,
            ) from e
