"""Test configuration and shared fakes for pytest."""

from __future__ import annotations

import io
import os
import threading
from types import SimpleNamespace

import pytest
from PIL import Image

from ai_client import ValidationVerdict
from media import GeneratedImage


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "ai: real API tests that may cost money")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.getenv("RUN_AI_TESTS") == "1":
        return

    skip_marker = pytest.mark.skip(reason="Set RUN_AI_TESTS=1 to run AI integration tests.")
    for item in items:
        if "ai" in item.keywords:
            item.add_marker(skip_marker)


# ---------------------------------------------------------------------------
# Image helpers


def image_bytes(fmt: str = "JPEG", size: tuple[int, int] = (32, 32), color=(200, 150, 120)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format=fmt)
    return out.getvalue()


def padded(data: bytes, total: int) -> bytes:
    """Pad a valid image with trailing bytes up to ``total`` bytes."""
    return data + b"\0" * (total - len(data))


@pytest.fixture
def jpeg_bytes() -> bytes:
    return image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return image_bytes("PNG")


# ---------------------------------------------------------------------------
# Remote client fakes


class FakeClient:
    """Stands in for the Gemini client; records calls and the controller state seen."""

    def __init__(self, verdict=None, images=None, validate_error=None, generate_error=None):
        self.verdict = verdict or ValidationVerdict(is_valid=True, feedback="Looks good.")
        self.images = images
        self.validate_error = validate_error
        self.generate_error = generate_error
        self.calls: list[tuple] = []
        self.controller = None
        self.states_seen: list[str] = []

    def _observe(self) -> None:
        if self.controller is not None:
            self.states_seen.append(self.controller.state.kind)

    def validate(self, image, instruction):
        self.calls.append(("validate", image, instruction))
        self._observe()
        if self.validate_error:
            raise self.validate_error
        return self.verdict

    def generate(self, image, instruction, candidate_count=1):
        self.calls.append(("generate", image, instruction, candidate_count))
        self._observe()
        if self.generate_error:
            raise self.generate_error
        if self.images is not None:
            return list(self.images)
        return [GeneratedImage(data=image_bytes("PNG", color=(10 * i, 0, 0))) for i in range(candidate_count)]

    def kinds(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


class FakeModels:
    """Mimics ``genai.Client().models``: replays queued responses or exceptions."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self._lock = threading.Lock()
        self.requests: list[dict] = []

    def generate_content(self, **kwargs):
        with self._lock:
            self.requests.append(kwargs)
            item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def fake_sdk(*responses) -> SimpleNamespace:
    return SimpleNamespace(models=FakeModels(*responses))


def image_response(data: bytes, mime_type: str = "image/png") -> SimpleNamespace:
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), finish_reason="STOP")
    return SimpleNamespace(candidates=[candidate], prompt_feedback=None)


def blocked_response(finish_reason: str, text: str | None = None) -> SimpleNamespace:
    parts = [SimpleNamespace(inline_data=None, text=text)] if text else []
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=finish_reason)
    return SimpleNamespace(candidates=[candidate], prompt_feedback=None)


def text_response(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, parsed=None, candidates=[], prompt_feedback=None)


# ---------------------------------------------------------------------------
# Flask


@pytest.fixture
def web(monkeypatch, fake_client):
    """Flask test client wired to ``fake_client`` with a fresh session store."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("AI_PROVIDER", "gemini_api")

    import app as app_module
    from sessions import SessionStore

    app_module.app.config["TESTING"] = True
    monkeypatch.setitem(app_module.app.extensions, "session_store", SessionStore(lambda: fake_client))
    with app_module.app.test_client() as client:
        yield client
