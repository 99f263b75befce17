"""
AI client factory.
Selects the active backend based on the AI_PROVIDER environment variable
and builds its client once per process.

Supported backends (ai_backends/<name>.py, each must expose a Client class):
  gemini_api : Google Gemini via google-genai SDK (default)

A backend Client provides two operations:
  validate(image, instruction)                 -> ValidationVerdict
  generate(image, instruction, candidate_count) -> list[GeneratedImage]

To add a new backend:
  1. Create ai_backends/my_provider.py with a Client class matching the above.
  2. Set AI_PROVIDER=my_provider in .env.
"""
import os
import importlib
import threading
from typing import Protocol

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from media import GeneratedImage, ImagePayload

load_dotenv()

DEFAULT_PROVIDER = "gemini_api"

_client = None
_client_lock = threading.Lock()


class ValidationVerdict(BaseModel):
    """Two-field verdict; also the structured-output schema sent to the model."""
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    feedback: str


class GenerationClient(Protocol):
    def validate(self, image: ImagePayload, instruction: str) -> ValidationVerdict: ...

    def generate(
        self, image: ImagePayload, instruction: str, candidate_count: int = 1
    ) -> list[GeneratedImage]: ...


def load_backend(provider: str | None = None):
    provider = provider or os.environ.get("AI_PROVIDER", DEFAULT_PROVIDER)
    try:
        return importlib.import_module(f"ai_backends.{provider}")
    except ModuleNotFoundError:
        raise RuntimeError(
            f"AI backend '{provider}' not found. "
            f"Create ai_backends/{provider}.py or change AI_PROVIDER in .env."
        )


def get_client() -> GenerationClient:
    """Return the process-wide client, constructing it on first use."""
    global _client
    with _client_lock:
        if _client is None:
            _client = load_backend().Client()
        return _client

