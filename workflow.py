"""
Workflow controller.

One controller per feature per browser session.  The state is a single
tagged value; every state class carries exactly the data that is valid in
it, so impossible combinations ("generating" without a photo) cannot be
represented.

    Upload ─submit─▶ Validating ─valid─▶ CollectingOptions ─generate─▶ Generating ─▶ Result
                        │                 (or straight to Generating        │
                        └─invalid/error─▶ Upload    when the feature        └─error─▶ Upload or
                                                    skips the panel)                  CollectingOptions

reset() returns to Upload from anywhere, and wins over a remote call still
in flight: that call's outcome is dropped.  Remote failures never escape:
they become a user-facing message on the state the controller falls back to.
"""
import logging
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import PurePath
from typing import ClassVar, Union

from errors import (
    AcquisitionError,
    GenerationError,
    GenerationNoCandidate,
    InvalidTransition,
    PhotoStudioError,
    ValidationTransportError,
)
from features import FEATURES
from media import GeneratedImage, ImagePayload
from prompts import build_generation_instruction, build_validation_instruction, get_handler

log = logging.getLogger(__name__)


# ── States ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Upload:
    kind: ClassVar[str] = "upload"
    error: str | None = None


@dataclass(frozen=True)
class Validating:
    kind: ClassVar[str] = "validating"
    payload: ImagePayload


@dataclass(frozen=True)
class CollectingOptions:
    kind: ClassVar[str] = "options"
    payload: ImagePayload
    error: str | None = None


@dataclass(frozen=True)
class Generating:
    kind: ClassVar[str] = "generating"
    payload: ImagePayload
    options: object


@dataclass(frozen=True)
class Result:
    kind: ClassVar[str] = "result"
    payload: ImagePayload
    result: "GeneratedResult"


State = Union[Upload, Validating, CollectingOptions, Generating, Result]


# ── Results & filenames ───────────────────────────────────────────────────────

def slugify(text: str, lower: bool = True) -> str:
    slug = re.sub(r"[^A-Za-z0-9_]+", "-", text).strip("-")
    return slug.lower() if lower else slug


def sanitize_stem(source_name: str) -> str:
    """Original filename without extension, reduced to safe characters."""
    return slugify(PurePath(source_name).stem, lower=False) or "photo"


@dataclass(frozen=True)
class GeneratedResult:
    images:   tuple[GeneratedImage, ...]
    stem:     str
    feature:  str
    variant:  str
    selected: int = 0

    @property
    def selected_image(self) -> GeneratedImage:
        return self.images[self.selected]

    def filename(self, index: int | None = None) -> str:
        image = self.images[self.selected if index is None else index]
        return f"{self.stem}-{self.feature}-{self.variant}.{image.extension}"


# ── Controller ────────────────────────────────────────────────────────────────

class WorkflowController:

    def __init__(self, feature_key: str, client):
        self.feature_key = feature_key
        self.config      = FEATURES[feature_key]
        self.handler     = get_handler(feature_key)
        self.client      = client
        self.state       = None
        # Requests for one session may arrive on several server threads.
        self._lock  = threading.Lock()
        self._epoch = 0   # bumped by reset(); remote outcomes from an older epoch are dropped
        self.reset()

    def __repr__(self) -> str:
        return f"<WorkflowController {self.feature_key} state={self.state.kind}>"

    # ── helpers ──

    def _enter(self, state: State) -> State:
        log.debug("%s: %s -> %s", self.feature_key, getattr(self.state, "kind", "-"), state.kind)
        self.state = state
        return state

    def _require(self, *allowed: type, action: str) -> None:
        if not isinstance(self.state, allowed):
            raise InvalidTransition(f"{action} not allowed in state {self.state.kind!r}")

    def _settle(self, epoch: int, state: State) -> State:
        """Enter ``state`` unless a reset happened while the remote call ran."""
        with self._lock:
            if epoch != self._epoch:
                log.info("%s: discarding %s outcome after reset", self.feature_key, state.kind)
                return self.state
            return self._enter(state)

    @property
    def payload(self) -> ImagePayload | None:
        return getattr(self.state, "payload", None)

    @property
    def error(self) -> str | None:
        return getattr(self.state, "error", None)

    # ── operations ──

    def reset(self) -> State:
        with self._lock:
            self._epoch += 1
            self.options = self.handler.default_options()
            return self._enter(Upload())

    def reject(self, error: AcquisitionError) -> State:
        """Record a local upload/capture failure; no network call."""
        with self._lock:
            self._require(Upload, action="reject")
            log.info("%s: acquisition rejected: %s", self.feature_key, error)
            return self._enter(Upload(error=error.user_message))

    def update_options(self, values: Mapping) -> State:
        with self._lock:
            self._require(Upload, CollectingOptions, action="update_options")
            merged = self.options.model_dump()
            merged.update({k: values[k] for k in self.handler.FIELDS if k in values})
            self.options = self.handler.Options.model_validate(merged)
            return self.state

    def submit(self, payload: ImagePayload) -> State:
        with self._lock:
            self._require(Upload, action="submit")
            self._enter(Validating(payload))
            epoch   = self._epoch
            options = self.options

        instruction = build_validation_instruction(self.feature_key, options)
        try:
            verdict = self.client.validate(payload, instruction)
        except Exception as e:  # noqa: BLE001 - remote failures end here
            log.warning("%s: validation failed for %s: %s", self.feature_key, payload.source_name, e)
            message = e.user_message if isinstance(e, ValidationTransportError) else ValidationTransportError.user_message
            return self._settle(epoch, Upload(error=message))

        if not verdict.is_valid:
            log.info("%s: photo %s rejected: %s", self.feature_key, payload.source_name, verdict.feedback)
            return self._settle(epoch, Upload(error=verdict.feedback))

        if self.config["collect_options"]:
            return self._settle(epoch, CollectingOptions(payload))
        with self._lock:
            if epoch != self._epoch:
                log.info("%s: discarding validation outcome after reset", self.feature_key)
                return self.state
            options = self._start_generating(payload)
        return self._generate(payload, options, epoch)

    def generate(self) -> State:
        with self._lock:
            self._require(CollectingOptions, action="generate")
            payload = self.state.payload
            options = self._start_generating(payload)
            epoch   = self._epoch
        return self._generate(payload, options, epoch)

    def _start_generating(self, payload: ImagePayload):
        options = self.options
        self._enter(Generating(payload, options))
        return options

    def _generate(self, payload: ImagePayload, options, epoch: int) -> State:
        count = self.config["candidate_count"]
        instruction = build_generation_instruction(self.feature_key, options)
        try:
            images = list(self.client.generate(payload, instruction, count))
            if len(images) != count:
                raise GenerationNoCandidate(f"expected {count} image(s), got {len(images)}")
        except Exception as e:  # noqa: BLE001 - remote failures end here
            log.warning("%s: generation failed for %s: %s", self.feature_key, payload.source_name, e)
            message = e.user_message if isinstance(e, PhotoStudioError) else GenerationError.user_message
            if self.config["keep_payload_on_failure"]:
                return self._settle(epoch, CollectingOptions(payload, error=message))
            return self._settle(epoch, Upload(error=message))

        result = GeneratedResult(
            images=tuple(images),
            stem=sanitize_stem(payload.source_name),
            feature=self.feature_key,
            variant=slugify(self.handler.variant_label(options)),
        )
        return self._settle(epoch, Result(payload, result))

    def select(self, index: int) -> State:
        with self._lock:
            self._require(Result, action="select")
            if not 0 <= index < len(self.state.result.images):
                raise IndexError(f"no candidate {index}")
            return self._enter(replace(self.state, result=replace(self.state.result, selected=index)))

    def download(self) -> tuple[str, bytes, str]:
        """Filename, bytes and MIME type of the currently selected image."""
        with self._lock:
            self._require(Result, action="download")
            result = self.state.result
        image = result.selected_image
        return result.filename(), image.data, image.mime_type
