"""
The generative-AI collaborator: one operation, "complete this prompt, with
the web search tool optionally enabled".
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from leadgen.key_manager import APIKeyManager, get_key_manager

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class ModelRequest:
    prompt: str
    model: str = DEFAULT_MODEL
    use_search: bool = True


@dataclass
class ModelResponse:
    text: str = ""
    block_reason: Optional[str] = None
    finish_reason: Optional[str] = None


class GenerativeClient(Protocol):
    async def complete(self, request: ModelRequest) -> ModelResponse:  # pragma: no cover - protocol
        ...


def _enum_name(value: Any) -> Optional[str]:
    """Normalise SDK enum values such as ``FinishReason.SAFETY`` or ``2``."""
    if value is None or value == "" or value == 0:
        return None
    name = getattr(value, "name", None) or str(value)
    return name.rsplit(".", 1)[-1].upper()


def message_text(content: Any) -> str:
    """Flatten an AIMessage content (string or list of parts) into text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class GeminiClient:
    """
    Calls Gemini through langchain, with Google Search grounding bound as a
    tool. Retries are left to the caller, so the SDK's own retry is off.
    """

    def __init__(self, key_manager: Optional[APIKeyManager] = None, temperature: float = 0.7):
        self._key_manager = key_manager
        self._temperature = temperature

    def create_llm_with_key(self, model: str, api_key: str, use_search: bool):
        llm = ChatGoogleGenerativeAI(
            model=model,
            temperature=self._temperature,
            api_key=api_key,
            max_retries=1,
        )
        if use_search:
            return llm.bind_tools([{"google_search": {}}])
        return llm

    async def complete(self, request: ModelRequest) -> ModelResponse:
        key_manager = self._key_manager or get_key_manager()
        api_key = key_manager.get_round_robin_key()
        llm = self.create_llm_with_key(request.model, api_key, request.use_search)
        try:
            message = await llm.ainvoke([HumanMessage(content=request.prompt)])
        except Exception as e:
            key_manager.record_api_call(api_key, success=False)
            logger.warning(f"Gemini call failed ({e}); key usage: {key_manager.get_key_stats()}")
            raise
        key_manager.record_api_call(api_key, success=True)

        metadata = getattr(message, "response_metadata", None) or {}
        feedback = metadata.get("prompt_feedback") or {}
        response = ModelResponse(
            text=message_text(message.content),
            block_reason=_enum_name(feedback.get("block_reason")),
            finish_reason=_enum_name(metadata.get("finish_reason")),
        )
        logger.debug(f"Model {request.model} answered with {len(response.text)} characters "
                     f"(finish_reason={response.finish_reason})")
        return response
