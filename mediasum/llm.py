"""
Vision and text model client.

Provides:
    - ModelClient protocol consumed by the synthesis engine
    - OpenAICompatibleClient for Groq, OpenAI and any OpenAI-compatible API
    - Image payload encoding (base64 data URLs)

The client never retries: it is built with ``max_retries=0`` and every
failure surfaces immediately as ModelCallError.
"""

from __future__ import annotations

import base64
import logging
import os
from typing import TYPE_CHECKING, Any, Literal, Protocol, Sequence

from mediasum import prompts

if TYPE_CHECKING:
    from openai import OpenAI

logger = logging.getLogger(__name__)

SynthesisStyle = Literal["document", "summary"]

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_VISION_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"
DEFAULT_TEXT_MODEL = "llama-3.3-70b-versatile"


class ModelCallError(Exception):
    """A model call failed (API error, timeout, malformed response)."""

    pass


class ModelClient(Protocol):
    """Model calls the synthesis engine depends on."""

    vision_model: str
    text_model: str

    def analyze_batch(self, transcript: str, images: Sequence[bytes], instructions: str) -> str:
        """Describe one batch of frames. Returns "" when nothing was extracted."""
        ...

    def synthesize(
        self,
        transcript: str,
        batch_texts: Sequence[str] | None = None,
        style: SynthesisStyle = "document",
    ) -> str:
        """Produce the final text from the transcript and optional visual details."""
        ...


def encode_image_data_url(image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
    """Encode raw image bytes as a data URL accepted by vision chat APIs."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def create_openai_client(config: dict[str, Any]) -> OpenAI:
    """
    Create an OpenAI SDK client from the ``llm`` config section.

    Raises:
        ValueError: If the API key environment variable is not set
    """
    from openai import OpenAI

    llm_cfg = config.get("llm", {})
    key_env = llm_cfg.get("api_key_env", "GROQ_API_KEY")
    api_key = os.environ.get(key_env)
    if not api_key:
        raise ValueError(f"{key_env} environment variable not set")

    return OpenAI(
        api_key=api_key,
        base_url=llm_cfg.get("base_url", DEFAULT_BASE_URL),
        timeout=llm_cfg.get("timeout_seconds", 120),
        max_retries=0,
    )


class OpenAICompatibleClient:
    """
    Chat-completions client for the vision and text models.

    Supports Groq, OpenAI, and any OpenAI-compatible API.
    """

    def __init__(
        self,
        client: OpenAI,
        vision_model: str = DEFAULT_VISION_MODEL,
        text_model: str = DEFAULT_TEXT_MODEL,
        batch_max_tokens: int = 1024,
        synthesis_max_tokens: int = 3500,
        summary_max_tokens: int = 512,
        batch_timeout: float | None = None,
        synthesis_timeout: float | None = None,
    ):
        self.client = client
        self.vision_model = vision_model
        self.text_model = text_model
        self.batch_max_tokens = batch_max_tokens
        self.synthesis_max_tokens = synthesis_max_tokens
        self.summary_max_tokens = summary_max_tokens
        self.batch_timeout = batch_timeout
        self.synthesis_timeout = synthesis_timeout

    @classmethod
    def from_config(cls, config: dict[str, Any], client: OpenAI | None = None) -> OpenAICompatibleClient:
        llm_cfg = config.get("llm", {})
        return cls(
            client or create_openai_client(config),
            vision_model=llm_cfg.get("vision_model", DEFAULT_VISION_MODEL),
            text_model=llm_cfg.get("text_model", DEFAULT_TEXT_MODEL),
            batch_max_tokens=llm_cfg.get("batch_max_tokens", 1024),
            synthesis_max_tokens=llm_cfg.get("synthesis_max_tokens", 3500),
            summary_max_tokens=llm_cfg.get("summary_max_tokens", 512),
            batch_timeout=llm_cfg.get("batch_timeout_seconds"),
            synthesis_timeout=llm_cfg.get("timeout_seconds"),
        )

    def _complete(
        self,
        model: str,
        messages: list[dict[str, Any]],
        max_tokens: int,
        timeout: float | None,
    ) -> str:
        """Run one chat completion and return the stripped content ("" if none)."""
        from openai import OpenAIError

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise ModelCallError(f"{model} request failed: {e}") from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        return content.strip()

    def analyze_batch(self, transcript: str, images: Sequence[bytes], instructions: str) -> str:
        """
        Ask the vision model to extract details from one batch of frames.

        Args:
            transcript: Full transcript, sent as shared context
            images: JPEG payloads for this batch, in order
            instructions: Batch-specific extraction instructions

        Returns:
            Extracted details, or "" if the model returned nothing

        Raises:
            ModelCallError: If the request fails
        """
        content: list[dict[str, Any]] = [
            {
                "type": "text",
                "text": prompts.BATCH_USER.format(instructions=instructions, transcript=transcript),
            }
        ]
        for image in images:
            content.append({"type": "image_url", "image_url": {"url": encode_image_data_url(image)}})

        messages = [
            {"role": "system", "content": prompts.BATCH_SYSTEM},
            {"role": "user", "content": content},
        ]
        return self._complete(self.vision_model, messages, self.batch_max_tokens, self.batch_timeout)

    def synthesize(
        self,
        transcript: str,
        batch_texts: Sequence[str] | None = None,
        style: SynthesisStyle = "document",
    ) -> str:
        """
        Ask the text model for the final summary or document.

        Args:
            transcript: Full transcript
            batch_texts: Visual details already tagged with their frame ranges
            style: "document" (Markdown docs) or "summary" (short prose);
                ignored when batch_texts are given

        Returns:
            Generated text, or "" if the model returned nothing

        Raises:
            ModelCallError: If the request fails
        """
        if batch_texts:
            system = prompts.DOCUMENT_SYSTEM
            user = prompts.DOCUMENT_USER.format(
                transcript=transcript,
                visual_details="\n".join(batch_texts),
            )
            max_tokens = self.synthesis_max_tokens
        elif style == "summary":
            system = prompts.SUMMARY_SYSTEM
            user = prompts.SUMMARY_USER.format(transcript=transcript)
            max_tokens = self.summary_max_tokens
        else:
            system = prompts.DOCUMENT_TEXT_ONLY_SYSTEM
            user = prompts.DOCUMENT_TEXT_ONLY_USER.format(transcript=transcript)
            max_tokens = self.synthesis_max_tokens

        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        return self._complete(self.text_model, messages, max_tokens, self.synthesis_timeout)
