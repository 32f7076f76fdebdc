"""
Chat completion proxy for the Juri legal assistant

Requests go to the primary chat server first. When it fails in any way the
hosted OpenAI-compatible completion API is tried once, and when that is not
configured or fails as well a canned assistant reply is returned. Callers
never see a backend error.
"""
import logging
import time
import json
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
import requests
from openai import OpenAI
from pydantic import ValidationError as PydanticValidationError
from config import settings
from models.chat import ChatRequest
from utils.exceptions import ChatBackendError, ErrorCode, ValidationError
from utils.error_handlers import log_performance_metric, handle_service_degradation

logger = logging.getLogger(__name__)


PROVIDER_PRIMARY = "primary"
PROVIDER_HOSTED = "hosted"
PROVIDER_FALLBACK = "fallback"

FALLBACK_MESSAGE = (
    "I apologize, but I'm having trouble connecting to the AI service right now. "
    "Please try again in a moment, or consult with a legal professional for immediate assistance."
)


@dataclass
class ChatResult:
    """Completion payload together with the backend that produced it"""
    payload: Dict[str, Any]
    provider: str
    processing_time_ms: int = 0

    @property
    def content(self) -> str:
        """Text of the first choice, or an empty string"""
        try:
            return self.payload["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            return ""

    @property
    def is_fallback(self) -> bool:
        return self.provider == PROVIDER_FALLBACK


def parse_chat_request(body: Any) -> ChatRequest:
    """
    Validate a raw chat proxy body

    Args:
        body: Decoded JSON body

    Returns:
        Validated ChatRequest

    Raises:
        ValidationError: If the body has no non-empty messages array
    """
    if not isinstance(body, dict):
        raise ValidationError(
            message="Request body must be a JSON object",
            validation_rule="json_object"
        )

    messages = body.get("messages")
    if not isinstance(messages, list) or not messages:
        raise ValidationError(
            message="Messages array is required",
            field_name="messages",
            field_value=messages,
            validation_rule="non_empty_array"
        )

    try:
        return ChatRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid chat request",
            field_name="messages",
            validation_rule="chat_message_format",
            original_exception=e
        )


class ChatService:
    """Service that forwards chat completions to the configured backends"""

    def __init__(
        self,
        primary_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the chat service

        Args:
            primary_url: Primary chat server URL (if None, will use settings.brev_server_url)
            api_key: Hosted completion API key (if None, will use settings.nvidia_api_key)
            model: Hosted completion model (if None, will use settings.nvidia_model)
            base_url: Hosted completion endpoint (if None, will use settings.nvidia_base_url)
            timeout: Primary request timeout in seconds
        """
        self.primary_url = (primary_url or settings.brev_server_url or "").rstrip("/")
        self.api_key = api_key or settings.nvidia_api_key
        self.model = model or settings.nvidia_model
        self.base_url = base_url or settings.nvidia_base_url
        self.timeout = timeout or settings.chat_primary_timeout_seconds
        self.client: Optional[OpenAI] = None

        self._initialize_client()

    def _initialize_client(self) -> None:
        """Initialize the hosted completion client"""
        if not self.api_key:
            logger.warning("No NVIDIA API key provided, hosted completion fallback disabled")
            return

        try:
            self.client = OpenAI(api_key=self.api_key, base_url=self.base_url)
            logger.info(f"Hosted completion client initialized with model: {self.model}")
        except Exception as e:
            logger.error(f"Failed to initialize hosted completion client: {e}")
            self.client = None

    def _call_primary(self, messages: List[Dict[str, str]], temperature: float, max_tokens: int) -> Dict[str, Any]:
        """
        Forward the conversation to the primary chat server

        Returns:
            The server's JSON response, unchanged

        Raises:
            ChatBackendError: On timeout, connection failure, non-2xx status or invalid JSON
        """
        if not self.primary_url:
            raise ChatBackendError(
                message="Primary chat server not configured",
                provider=PROVIDER_PRIMARY,
                error_code=ErrorCode.CHAT_BACKEND_UNAVAILABLE
            )

        start_time = time.time()
        try:
            response = requests.post(
                url=f"{self.primary_url}/chat",
                headers={"Content-Type": "application/json"},
                data=json.dumps({
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens
                }),
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise ChatBackendError(
                message="Primary chat server timed out",
                provider=PROVIDER_PRIMARY,
                error_code=ErrorCode.CHAT_BACKEND_TIMEOUT,
                original_exception=e
            )
        except requests.exceptions.RequestException as e:
            raise ChatBackendError(
                message=f"Failed to reach primary chat server: {e}",
                provider=PROVIDER_PRIMARY,
                error_code=ErrorCode.CHAT_BACKEND_UNAVAILABLE,
                original_exception=e
            )

        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("primary_chat_call", duration_ms, {"status_code": response.status_code})

        if not response.ok:
            raise ChatBackendError(
                message=f"Primary chat server responded with HTTP {response.status_code}",
                provider=PROVIDER_PRIMARY,
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ChatBackendError(
                message="Invalid response from primary chat server",
                provider=PROVIDER_PRIMARY,
                status_code=response.status_code,
                original_exception=e
            )

    def _call_hosted(self, messages: List[Dict[str, str]], temperature: float, max_tokens: int) -> Dict[str, Any]:
        """
        Ask the hosted completion API

        Raises:
            ChatBackendError: If the client is not configured or the call fails
        """
        if self.client is None:
            raise ChatBackendError(
                message="Hosted completion API key not configured",
                provider=PROVIDER_HOSTED,
                error_code=ErrorCode.CHAT_BACKEND_UNAVAILABLE
            )

        start_time = time.time()
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                top_p=settings.default_top_p,
                max_tokens=max_tokens,
                frequency_penalty=0,
                presence_penalty=0,
                stream=False
            )
        except Exception as e:
            raise ChatBackendError(
                message=f"Hosted completion request failed: {e}",
                provider=PROVIDER_HOSTED,
                original_exception=e
            )

        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("hosted_chat_call", duration_ms, {"model": self.model})

        return completion.model_dump()

    @staticmethod
    def fallback_response() -> Dict[str, Any]:
        """Canned assistant reply used when no backend answered"""
        return {
            "choices": [
                {
                    "index": 0,
                    "message": {
                        "role": "assistant",
                        "content": FALLBACK_MESSAGE
                    },
                    "finish_reason": "stop"
                }
            ],
            "usage": {
                "prompt_tokens": 0,
                "completion_tokens": 0,
                "total_tokens": 0
            },
            "model": "fallback",
            "created": int(time.time())
        }

    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> ChatResult:
        """
        Produce a chat completion, primary backend first

        Args:
            messages: Conversation as a list of ``{role, content}`` dicts
            temperature: Sampling temperature (default from settings)
            max_tokens: Maximum tokens to generate (default from settings)

        Returns:
            ChatResult with the completion payload and the provider that produced it
        """
        start_time = time.time()
        temperature = settings.default_temperature if temperature is None else temperature
        max_tokens = max_tokens or settings.default_max_tokens

        attempts = (
            (PROVIDER_PRIMARY, self._call_primary),
            (PROVIDER_HOSTED, self._call_hosted),
        )

        for provider, call in attempts:
            try:
                payload = call(messages, temperature, max_tokens)
                processing_time = int((time.time() - start_time) * 1000)
                logger.info(f"Chat completion served by {provider} backend in {processing_time}ms")
                return ChatResult(payload=payload, provider=provider, processing_time_ms=processing_time)
            except ChatBackendError as e:
                handle_service_degradation(f"chat_{provider}", e)
                continue

        logger.error("All chat backends failed, returning canned reply")
        return ChatResult(
            payload=self.fallback_response(),
            provider=PROVIDER_FALLBACK,
            processing_time_ms=int((time.time() - start_time) * 1000)
        )

    def ask(self, prompt: str, system_prompt: Optional[str] = None, **kwargs) -> ChatResult:
        """Complete a single user prompt, optionally preceded by a system prompt"""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return self.complete(messages, **kwargs)

    def is_available(self) -> bool:
        """Check whether any real backend is configured"""
        return bool(self.primary_url) or self.client is not None

    def get_backend_info(self) -> Dict[str, str]:
        """Get information about the configured backends"""
        return {
            "primary_url": self.primary_url or "not configured",
            "hosted_model": self.model,
            "hosted_available": str(self.client is not None),
            "available": str(self.is_available())
        }
