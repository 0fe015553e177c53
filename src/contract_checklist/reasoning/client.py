"""Reasoning client adapter.

All calls to the external text-reasoning service go through
``ReasoningClient.invoke``. It builds the request from a ``PromptSpec``,
parses and validates the reply against the prompt's pydantic model, and
turns every way the reply can be wrong into a typed ``ReasoningError``.
Code downstream of ``invoke`` only ever sees validated models.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..config.models import ReasoningSettings
from ..interfaces.reasoning import IReasoningBackend, ReasoningReply, ReasoningRequest
from .exceptions import EmptyResult, MalformedResponse
from .parsing import parse_json_reply, recover_json_objects


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ResponseMode(Enum):
    """How the reply shape is enforced."""
    STRUCTURED = "structured"  # service constrained to the schema, verified here
    FREE_TEXT = "free_text"  # free text parsed locally


@dataclass
class PromptSpec:
    """
    Everything needed for one reasoning call.

    Attributes:
        task: Short task name used in logs, errors and tool names.
        instructions: Task description placed before the inputs.
        response_model: Pydantic model describing the expected reply.
        inputs: Labelled input texts, rendered in insertion order.
        mode: Structured or free-text generation.
        temperature: Sampling temperature for this call.
        system: Optional system prompt.
        required_items: Name of a list field that must not be empty.
    """
    task: str
    instructions: str
    response_model: Type[BaseModel]
    inputs: Dict[str, str] = field(default_factory=dict)
    mode: ResponseMode = ResponseMode.STRUCTURED
    temperature: Optional[float] = None
    system: Optional[str] = None
    required_items: Optional[str] = None

    def render(self) -> str:
        """Render the user prompt."""
        sections = [self.instructions.strip()]
        for label, text in self.inputs.items():
            sections.append(f"{label}:\n{text}")
        if self.mode is ResponseMode.FREE_TEXT:
            schema = json.dumps(self.response_model.model_json_schema(), indent=2)
            sections.append(
                "Return ONLY valid JSON matching this schema, no markdown formatting:\n"
                f"{schema}"
            )
        return "\n\n".join(sections)


class ReasoningClient:
    """
    Adapter between the pipeline and an ``IReasoningBackend``.

    Owns all non-determinism: replies are parsed, checked against the
    expected shape, and case-normalized before being returned.
    """

    def __init__(
        self,
        backend: IReasoningBackend,
        settings: Optional[ReasoningSettings] = None,
    ):
        """
        Initialize the client.

        Args:
            backend: The reasoning backend to call.
            settings: Reasoning settings (defaults used if not provided).
        """
        self._backend = backend
        self._settings = settings or ReasoningSettings()
        self.last_usage: Dict[str, Any] = {}

    @property
    def backend(self) -> IReasoningBackend:
        return self._backend

    @property
    def settings(self) -> ReasoningSettings:
        return self._settings

    def invoke(self, spec: PromptSpec) -> ModelT:
        """
        Run one reasoning call and return the validated reply.

        Args:
            spec: The prompt specification.

        Returns:
            An instance of ``spec.response_model``.

        Raises:
            ServiceUnavailable: The service could not be reached.
            MalformedResponse: The reply did not parse or match the shape.
            EmptyResult: ``spec.required_items`` came back empty.
        """
        request = ReasoningRequest(
            task=spec.task,
            prompt=spec.render(),
            system=spec.system,
            temperature=spec.temperature,
            max_tokens=self._settings.max_tokens,
        )

        logger.info(f"Invoking reasoning task '{spec.task}' ({spec.mode.value})")

        if spec.mode is ResponseMode.STRUCTURED:
            reply = self._backend.complete_structured(
                request,
                schema_name=spec.response_model.__name__,
                schema=spec.response_model.model_json_schema(),
            )
            data = reply.content
            raw = self._dump(data)
        else:
            reply = self._backend.complete_text(request)
            raw = reply.content if isinstance(reply.content, str) else self._dump(reply.content)
            data = self._parse_text(raw, spec, reply)

        self.last_usage = {
            "model": reply.model or self._backend.model_name,
            "stop_reason": reply.stop_reason,
            **reply.usage,
        }

        if isinstance(data, list) and spec.required_items:
            data = {spec.required_items: data}

        try:
            result = spec.response_model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Reply for task '{spec.task}' failed validation: {e.error_count()} errors")
            raise MalformedResponse(
                f"Reply does not match {spec.response_model.__name__}",
                task=spec.task,
                details={"validation_errors": [err["msg"] for err in e.errors()]},
                raw=raw,
            ) from e

        if spec.required_items and not getattr(result, spec.required_items):
            raise EmptyResult(
                f"Reply contained no {spec.required_items}",
                task=spec.task,
            )

        return result

    def _parse_text(self, raw: str, spec: PromptSpec, reply: ReasoningReply) -> Any:
        """Parse a free-text reply, recovering truncated arrays when possible."""
        try:
            return parse_json_reply(raw)
        except json.JSONDecodeError as e:
            if reply.stop_reason == "max_tokens" and spec.required_items and "[" in raw:
                recovered = recover_json_objects(raw[raw.find("["):])
                if recovered:
                    logger.warning(
                        f"Reply for task '{spec.task}' was truncated; "
                        f"recovered {len(recovered)} complete items"
                    )
                    return recovered
            raise MalformedResponse(
                f"Reply is not valid JSON: {e.msg}",
                task=spec.task,
                details={"position": e.pos},
                raw=raw,
            ) from e

    @staticmethod
    def _dump(data: Any) -> str:
        try:
            return json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError):
            return repr(data)
