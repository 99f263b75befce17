"""Live Gemini checks. Opt in with RUN_AI_TESTS=1 and a real GEMINI_API_KEY."""

from __future__ import annotations

import os

import pytest

from ai_backends.gemini_api import Client
from conftest import image_bytes
from features import FEATURES
from media import ImagePayload
from prompts import build_generation_instruction, build_validation_instruction, get_handler

pytestmark = pytest.mark.ai


@pytest.fixture(scope="module")
def client() -> Client:
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip("GEMINI_API_KEY is not set")
    return Client()


def test_blank_image_is_not_a_valid_portrait(client: Client) -> None:
    payload = ImagePayload.from_bytes(image_bytes("JPEG", size=(256, 256), color=(128, 128, 128)), "grey.jpg")
    options = get_handler("passport").default_options()

    verdict = client.validate(payload, build_validation_instruction("passport", options))

    assert verdict.is_valid is False
    assert verdict.feedback


@pytest.mark.parametrize("feature_key", sorted(FEATURES))
def test_generation_returns_configured_candidate_count(client: Client, feature_key: str) -> None:
    payload = ImagePayload.from_bytes(image_bytes("JPEG", size=(256, 256)), "swatch.jpg")
    options = get_handler(feature_key).default_options()
    count = FEATURES[feature_key]["candidate_count"]

    images = client.generate(payload, build_generation_instruction(feature_key, options), count)

    assert len(images) == count
    assert all(image.data for image in images)
