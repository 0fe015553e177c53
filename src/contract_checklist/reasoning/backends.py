"""Concrete reasoning backends."""

import logging
import os
from typing import Any, Dict, Optional

import anthropic

from ..config.models import ReasoningSettings
from ..interfaces.reasoning import IReasoningBackend, ReasoningReply, ReasoningRequest
from .exceptions import MalformedResponse, ServiceUnavailable


logger = logging.getLogger(__name__)


class AnthropicBackend(IReasoningBackend):
    """
    Reasoning backend on the Anthropic Messages API.

    Schema-constrained calls are made through a single forced tool whose
    input schema is the expected output shape. Timeout and SDK-level
    retries come from ``ReasoningSettings``.
    """

    def __init__(
        self,
        settings: Optional[ReasoningSettings] = None,
        client: Optional[anthropic.Anthropic] = None,
    ):
        """
        Initialize the backend.

        Args:
            settings: Reasoning settings (defaults used if not provided).
            client: Optional pre-built SDK client, mainly for tests.
        """
        self._settings = settings or ReasoningSettings()
        self._client = client

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def client(self) -> anthropic.Anthropic:
        """Get or create the SDK client."""
        if self._client is None:
            api_key = self._settings.api_key or os.environ.get("ANTHROPIC_API_KEY")
            if not api_key:
                raise ServiceUnavailable(
                    "ANTHROPIC_API_KEY not configured. Cannot reach the reasoning service."
                )
            self._client = anthropic.Anthropic(
                api_key=api_key,
                timeout=self._settings.timeout,
                max_retries=self._settings.max_retries,
            )
        return self._client

    def complete_text(self, request: ReasoningRequest) -> ReasoningReply:
        response = self._create(request)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return ReasoningReply(
            content=text,
            model=response.model,
            stop_reason=response.stop_reason,
            usage=self._usage(response),
        )

    def complete_structured(
        self,
        request: ReasoningRequest,
        schema_name: str,
        schema: Dict[str, Any],
    ) -> ReasoningReply:
        tool = {
            "name": schema_name,
            "description": f"Record the result of the {request.task} task.",
            "input_schema": schema,
        }
        response = self._create(
            request,
            tools=[tool],
            tool_choice={"type": "tool", "name": schema_name},
        )

        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == schema_name:
                return ReasoningReply(
                    content=block.input,
                    model=response.model,
                    stop_reason=response.stop_reason,
                    usage=self._usage(response),
                )

        raise MalformedResponse(
            "Reasoning service returned no structured output",
            task=request.task,
            details={"stop_reason": response.stop_reason},
        )

    def _create(self, request: ReasoningRequest, **kwargs):
        """Send one Messages API request, mapping SDK errors to ServiceUnavailable."""
        params: Dict[str, Any] = {
            "model": self._settings.model,
            "max_tokens": request.max_tokens or self._settings.max_tokens,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            params["system"] = request.system
        if request.temperature is not None:
            params["temperature"] = request.temperature
        params.update(kwargs)

        logger.debug(f"Calling {self._settings.model} for task '{request.task}'")
        try:
            return self.client.messages.create(**params)
        except anthropic.APIStatusError as e:
            raise ServiceUnavailable(
                f"Reasoning service returned HTTP {e.status_code}",
                task=request.task,
                details={"status_code": e.status_code, "error_type": type(e).__name__},
            ) from e
        except anthropic.APIError as e:
            raise ServiceUnavailable(
                f"Reasoning service unreachable: {e}",
                task=request.task,
                details={"error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _usage(response) -> Dict[str, Any]:
        usage = getattr(response, "usage", None)
        if usage is None:
            return {}
        input_tokens = getattr(usage, "input_tokens", None) or 0
        output_tokens = getattr(usage, "output_tokens", None) or 0
        return {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
        }


def create_backend(settings: ReasoningSettings) -> IReasoningBackend:
    """
    Build the backend named in the settings.

    Raises:
        ValueError: If the backend name is not known.
    """
    if settings.backend == "anthropic":
        return AnthropicBackend(settings)
    raise ValueError(f"Unknown reasoning backend: {settings.backend}")
