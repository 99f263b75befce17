"""Unit tests for the workflow controller state machine."""

from __future__ import annotations

import threading

import pytest

from ai_backends.gemini_api import Client
from ai_client import ValidationVerdict
from conftest import FakeClient, blocked_response, fake_sdk, image_bytes, image_response, padded, text_response
from errors import (
    AcquisitionError,
    GenerationSafetyBlocked,
    GenerationTransportError,
    InvalidTransition,
    ValidationTransportError,
)
from media import GeneratedImage, ImagePayload
from workflow import (
    CollectingOptions,
    Result,
    Upload,
    WorkflowController,
    sanitize_stem,
    slugify,
)


def make_payload(name: str = "holiday photo.jpg", size: int | None = None) -> ImagePayload:
    data = image_bytes("JPEG")
    if size:
        data = padded(data, size)
    return ImagePayload.from_bytes(data, name)


def controller_for(feature_key: str, client: FakeClient) -> WorkflowController:
    controller = WorkflowController(feature_key, client)
    client.controller = controller
    return controller


# ---------------------------------------------------------------------------
# Passport: generates right after a passing validation


def test_passport_happy_path_passes_through_every_state() -> None:
    client = FakeClient()
    controller = controller_for("passport", client)

    state = controller.submit(make_payload())

    assert isinstance(state, Result)
    assert client.kinds() == ["validate", "generate"]
    assert client.states_seen == ["validating", "generating"]
    assert client.calls[1][3] == 1
    assert state.result.selected == 0
    assert controller.error is None


def test_invalid_verdict_returns_to_upload_with_feedback() -> None:
    client = FakeClient(verdict=ValidationVerdict(is_valid=False, feedback="Your face is turned away."))
    controller = controller_for("passport", client)

    state = controller.submit(make_payload())

    assert state == Upload(error="Your face is turned away.")
    assert controller.payload is None
    assert client.kinds() == ["validate"]


def test_validation_transport_error_clears_payload() -> None:
    client = FakeClient(validate_error=ValidationTransportError("boom"))
    controller = controller_for("passport", client)

    state = controller.submit(make_payload())

    assert isinstance(state, Upload)
    assert controller.payload is None
    assert state.error == "We could not analyze your photo. Please try again."


def test_unexpected_validation_exception_is_contained() -> None:
    client = FakeClient(validate_error=KeyError("surprise"))
    controller = controller_for("portrait", client)

    state = controller.submit(make_payload())

    assert state.error == ValidationTransportError.user_message


def test_passport_generation_failure_discards_photo() -> None:
    client = FakeClient(generate_error=GenerationTransportError("socket closed"))
    controller = controller_for("passport", client)

    state = controller.submit(make_payload())

    assert state == Upload(error=GenerationTransportError.user_message)


def test_passport_uses_options_chosen_before_upload() -> None:
    client = FakeClient()
    controller = controller_for("passport", client)

    controller.update_options({"country": "Schengen Area / EU", "attire": "a simple collared shirt"})
    state = controller.submit(make_payload())

    instruction = client.calls[1][2]
    assert "Schengen Area / EU" in instruction
    assert "a simple collared shirt" in instruction
    filename, _, mime = controller.download()
    assert filename == "holiday-photo-passport-schengen-area-eu.png"
    assert mime == "image/png"
    assert isinstance(state, Result)


def test_no_attire_change_keeps_clothing_in_instruction() -> None:
    client = FakeClient()
    controller = controller_for("passport", client)

    controller.update_options({"country": "China", "attire": "no change to attire"})
    controller.submit(make_payload())

    instruction = client.calls[1][2]
    assert "China" in instruction
    assert "58% and 75%" in instruction
    assert "DO NOT CHANGE THE FACE" in instruction
    assert "Change the person's clothing" not in instruction


# ---------------------------------------------------------------------------
# Portrait: pauses for options, two candidates


def test_portrait_waits_for_options_then_generates_two() -> None:
    client = FakeClient()
    controller = controller_for("portrait", client)
    payload = make_payload("selfie.jpg", size=2 * 1024 * 1024)

    state = controller.submit(payload)
    assert state == CollectingOptions(payload)
    assert client.kinds() == ["validate"]

    controller.update_options({"style": "Vintage Film", "custom_prompt": "with a hat"})
    state = controller.generate()

    assert isinstance(state, Result)
    assert len(state.result.images) == 2
    assert state.result.selected == 0
    assert client.calls[1][3] == 2
    assert client.states_seen == ["validating", "generating"]
    assert "with a hat" in client.calls[1][2]


def test_portrait_generation_failure_keeps_photo() -> None:
    client = FakeClient(generate_error=GenerationSafetyBlocked("blocked"))
    controller = controller_for("portrait", client)
    payload = make_payload()
    controller.submit(payload)

    state = controller.generate()

    assert state == CollectingOptions(payload, error=GenerationSafetyBlocked.user_message)
    assert controller.payload is payload


def test_partial_candidate_list_is_a_failure() -> None:
    client = FakeClient(images=[GeneratedImage(image_bytes("PNG"))])
    controller = controller_for("portrait", client)
    controller.submit(make_payload())

    state = controller.generate()

    assert isinstance(state, CollectingOptions)
    assert state.error


@pytest.mark.parametrize(("feature_key", "fallback"), [("passport", Upload), ("portrait", CollectingOptions)])
def test_safety_block_from_gemini_falls_back_per_feature(feature_key: str, fallback: type) -> None:
    sdk = fake_sdk(
        text_response('{"isValid": true, "feedback": ""}'),
        blocked_response("SAFETY"),
        blocked_response("SAFETY"),
    )
    controller = WorkflowController(feature_key, Client(sdk_client=sdk))

    state = controller.submit(make_payload())
    if isinstance(state, CollectingOptions):
        state = controller.generate()

    assert isinstance(state, fallback)
    assert "safety policy" in state.error
    assert not isinstance(controller.state, Result)


def test_gemini_two_candidate_result_end_to_end() -> None:
    sdk = fake_sdk(
        text_response('{"isValid": true, "feedback": "Clear face."}'),
        image_response(image_bytes("PNG")),
        image_response(image_bytes("PNG")),
    )
    controller = WorkflowController("portrait", Client(sdk_client=sdk))

    controller.submit(make_payload())
    state = controller.generate()

    assert isinstance(state, Result)
    assert len(state.result.images) == 2


# ---------------------------------------------------------------------------
# Result, download, reset


def test_select_and_download_second_candidate() -> None:
    jpeg, png = image_bytes("JPEG"), image_bytes("PNG")
    client = FakeClient(images=[GeneratedImage(png), GeneratedImage(jpeg)])
    controller = controller_for("portrait", client)
    controller.submit(make_payload("Me & My Dog.PNG"))
    controller.update_options({"style": "Minimalist B&W"})
    controller.generate()

    controller.select(1)
    filename, data, mime = controller.download()

    assert controller.state.result.selected == 1
    assert data == jpeg
    assert mime == "image/jpeg"
    assert filename == "Me-My-Dog-portrait-minimalist-b-w.jpg"


def test_select_out_of_range() -> None:
    controller = controller_for("portrait", FakeClient())
    controller.submit(make_payload())
    controller.generate()

    with pytest.raises(IndexError):
        controller.select(2)


@pytest.mark.parametrize("action", ["generate", "download"])
def test_actions_outside_their_state_are_rejected(action: str) -> None:
    controller = controller_for("portrait", FakeClient())

    with pytest.raises(InvalidTransition):
        getattr(controller, action)()


def test_submit_twice_is_rejected() -> None:
    controller = controller_for("portrait", FakeClient())
    controller.submit(make_payload())

    with pytest.raises(InvalidTransition):
        controller.submit(make_payload())


def test_reject_records_acquisition_error_without_network() -> None:
    client = FakeClient()
    controller = controller_for("passport", client)

    state = controller.reject(AcquisitionError("too big", "File size should not exceed 4MB."))

    assert state == Upload(error="File size should not exceed 4MB.")
    assert client.calls == []


def test_reset_is_idempotent_from_every_state() -> None:
    fresh = WorkflowController("portrait", FakeClient())
    initial = (fresh.state, fresh.options)

    controller = controller_for("portrait", FakeClient())
    controller.update_options({"style": "Cinematic", "custom_prompt": "moody"})
    states = [controller.state]
    controller.submit(make_payload())
    states.append(controller.state)
    controller.generate()
    states.append(controller.state)

    assert [s.kind for s in states] == ["upload", "options", "result"]
    for _ in range(3):
        controller.reset()
        assert (controller.state, controller.options) == initial
        assert controller.payload is None


def test_filename_helpers() -> None:
    assert sanitize_stem("../../etc/passwd") == "passwd"
    assert sanitize_stem("holiday photo.jpeg") == "holiday-photo"
    assert sanitize_stem("???.png") == "photo"
    assert slugify("Schengen Area / EU") == "schengen-area-eu"


# ---------------------------------------------------------------------------
# Reset while a remote call is in flight


class BlockingClient(FakeClient):
    """Holds the named remote call until ``release`` is set."""

    def __init__(self, blocking: str, **kwargs):
        super().__init__(**kwargs)
        self.blocking = blocking
        self.entered = threading.Event()
        self.release = threading.Event()

    def _hold(self, kind: str) -> None:
        if kind == self.blocking:
            self.entered.set()
            assert self.release.wait(timeout=5)

    def validate(self, image, instruction):
        self._hold("validate")
        return super().validate(image, instruction)

    def generate(self, image, instruction, candidate_count=1):
        self._hold("generate")
        return super().generate(image, instruction, candidate_count)


def run_with_reset(controller: WorkflowController, client: BlockingClient, action) -> None:
    worker = threading.Thread(target=action)
    worker.start()
    assert client.entered.wait(timeout=5)

    controller.reset()
    assert isinstance(controller.state, Upload)

    client.release.set()
    worker.join(timeout=5)
    assert not worker.is_alive()


@pytest.mark.parametrize("feature_key", ["passport", "portrait"])
def test_reset_during_generation_discards_late_result(feature_key: str) -> None:
    client = BlockingClient("generate")
    controller = controller_for(feature_key, client)
    if feature_key == "passport":
        action = lambda: controller.submit(make_payload())  # noqa: E731
    else:
        controller.submit(make_payload())
        action = controller.generate

    run_with_reset(controller, client, action)

    assert controller.state == Upload()
    assert controller.payload is None


def test_reset_during_validation_discards_late_verdict() -> None:
    client = BlockingClient("validate")
    controller = controller_for("passport", client)

    run_with_reset(controller, client, lambda: controller.submit(make_payload()))

    assert controller.state == Upload()
    assert client.kinds() == ["validate"]


def test_controller_usable_after_discarded_call() -> None:
    client = BlockingClient("generate")
    controller = controller_for("passport", client)
    run_with_reset(controller, client, lambda: controller.submit(make_payload()))

    state = controller.submit(make_payload())

    assert isinstance(state, Result)
