"""
AI backend: Google Gemini
Validation uses a text model with structured JSON output; generation uses
an image model with IMAGE response modality.
Requires GEMINI_API_KEY in environment.
"""
import os
import json
import base64
import logging
from concurrent.futures import ThreadPoolExecutor

from google import genai
from google.genai import types

from ai_client import ValidationVerdict
from errors import (
    GenerationNoCandidate,
    GenerationRecitationBlocked,
    GenerationSafetyBlocked,
    GenerationTransportError,
    ValidationTransportError,
)
from media import GeneratedImage, ImagePayload

log = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL  = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

MAX_CANDIDATES = 2

SAFETY_REASONS = {"SAFETY", "IMAGE_SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}
RECITATION_REASONS = {"RECITATION", "IMAGE_RECITATION"}


def _reason_name(reason) -> str:
    """FinishReason / BlockedReason enums and plain strings alike → 'SAFETY'."""
    if reason is None:
        return ""
    name = getattr(reason, "name", None) or str(reason)
    return name.rsplit(".", 1)[-1].upper()


def _quota_message(msg: str) -> str | None:
    """Friendly text for a 429 / RESOURCE_EXHAUSTED error, else None."""
    if "429" not in msg and "RESOURCE_EXHAUSTED" not in msg:
        return None
    retry = ""
    try:
        data = json.loads(msg[msg.index("{"):])
        details = data.get("error", {}).get("details", [])
        for d in details:
            if d.get("@type", "").endswith("RetryInfo"):
                retry = f" Retry after: {d['retryDelay']}."
    except (ValueError, KeyError, AttributeError):
        pass
    return f"The AI service quota has been reached.{retry} Please wait and try again."


def summarize_response(response) -> str:
    """One-line description of a response for the log."""
    summaries = []
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        summaries.append(f"prompt_blocked={_reason_name(feedback.block_reason)}")
    for idx, candidate in enumerate(getattr(response, "candidates", None) or []):
        part_types = []
        content = getattr(candidate, "content", None)
        for part in (getattr(content, "parts", None) or []) if content else []:
            if getattr(part, "inline_data", None):
                part_types.append("inline_data")
            elif getattr(part, "text", None):
                part_types.append("text")
            else:
                part_types.append(type(part).__name__)
        reason = _reason_name(getattr(candidate, "finish_reason", None)) or "-"
        summaries.append(f"cand{idx}: reason={reason}, parts={','.join(part_types) or 'none'}")
    return "; ".join(summaries) if summaries else "no candidates"


def extract_image(response) -> bytes | None:
    """Return the first inline image found in the response, or None."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in (getattr(content, "parts", None) or []) if content else []:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline else None
            if data:
                return base64.b64decode(data) if isinstance(data, str) else data
    return None


def classify_missing_image(response) -> Exception:
    """Pick the error that explains why a response carries no image."""
    detail = summarize_response(response)

    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        return GenerationSafetyBlocked(f"prompt blocked: {detail}")

    reasons = {
        _reason_name(getattr(c, "finish_reason", None))
        for c in getattr(response, "candidates", None) or []
    }
    if reasons & SAFETY_REASONS:
        return GenerationSafetyBlocked(detail)
    if reasons & RECITATION_REASONS:
        return GenerationRecitationBlocked(detail)
    return GenerationNoCandidate(detail)


def parse_verdict(response) -> ValidationVerdict:
    """Turn a structured-output response into a verdict.

    Prefers ``response.parsed`` (SDK-parsed model), then ``response.text``
    as JSON, then the outermost ``{...}`` span of the text.
    """
    parsed = getattr(response, "parsed", None)
    if isinstance(parsed, ValidationVerdict):
        return parsed

    raw_text = ""
    try:
        raw_text = (getattr(response, "text", None) or "").strip()
        return ValidationVerdict.model_validate_json(raw_text)
    except (ValueError, TypeError) as parse_err:
        try:
            start = raw_text.index("{")
            end   = raw_text.rindex("}") + 1
            return ValidationVerdict.model_validate(json.loads(raw_text[start:end]))
        except (ValueError, TypeError):
            snippet = raw_text[:500] if raw_text else "(empty)"
            raise ValidationTransportError(
                f"validation response could not be parsed ({parse_err}); raw: {snippet}"
            ) from parse_err


class Client:
    """Stateless Gemini client shared by every workflow controller."""

    def __init__(
        self,
        api_key: str | None = None,
        text_model: str | None = None,
        image_model: str | None = None,
        sdk_client=None,
    ):
        if sdk_client is None:
            api_key = api_key or os.environ.get("GEMINI_API_KEY")
            if not api_key:
                raise RuntimeError(
                    "GEMINI_API_KEY is not set. Copy .env.example to .env and add your key."
                )
            sdk_client = genai.Client(api_key=api_key)
        self._sdk = sdk_client
        self.text_model  = text_model  or os.environ.get("GEMINI_TEXT_MODEL",  DEFAULT_TEXT_MODEL)
        self.image_model = image_model or os.environ.get("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)

    @staticmethod
    def _image_part(image: ImagePayload) -> types.Part:
        return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)

    # ── Validation ────────────────────────────────────────────────────────────

    def validate(self, image: ImagePayload, instruction: str) -> ValidationVerdict:
        try:
            response = self._sdk.models.generate_content(
                model=self.text_model,
                contents=[self._image_part(image), instruction],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ValidationVerdict,
                ),
            )
        except Exception as e:  # noqa: BLE001 - any SDK/transport failure is a transport error
            quota = _quota_message(str(e))
            raise ValidationTransportError(str(e), quota) from e

        verdict = parse_verdict(response)
        log.info("Validation of %s: valid=%s", image.source_name, verdict.is_valid)
        return verdict

    # ── Generation ────────────────────────────────────────────────────────────

    def _generate_one(self, image: ImagePayload, instruction: str) -> GeneratedImage:
        try:
            response = self._sdk.models.generate_content(
                model=self.image_model,
                contents=[self._image_part(image), instruction],
                config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
            )
        except Exception as e:  # noqa: BLE001 - any SDK/transport failure is a transport error
            quota = _quota_message(str(e))
            raise GenerationTransportError(str(e), quota) from e

        data = extract_image(response)
        if data is None:
            raise classify_missing_image(response)
        return GeneratedImage(data=data)

    def generate(
        self, image: ImagePayload, instruction: str, candidate_count: int = 1
    ) -> list[GeneratedImage]:
        """Generate ``candidate_count`` images with independent parallel calls.

        All or nothing: if any call fails, its classified error is raised and
        no partial result is returned.
        """
        if not 1 <= candidate_count <= MAX_CANDIDATES:
            raise ValueError(f"candidate_count must be 1 or 2, got {candidate_count}")

        if candidate_count == 1:
            images = [self._generate_one(image, instruction)]
        else:
            with ThreadPoolExecutor(max_workers=candidate_count) as pool:
                futures = [
                    pool.submit(self._generate_one, image, instruction)
                    for _ in range(candidate_count)
                ]
                images = [f.result() for f in futures]

        log.info("Generated %d image(s) for %s", len(images), image.source_name)
        return images
