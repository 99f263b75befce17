"""
Error taxonomy.

Every error carries a short, user-facing sentence in ``user_message``.
The technical detail (exception text, SDK response summary) stays in the
exception message and goes to the log only.
"""


class PhotoStudioError(RuntimeError):
    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: str = "", user_message: str | None = None):
        super().__init__(detail or self.user_message)
        if user_message:
            self.user_message = user_message


# ── Media acquisition ────────────────────────────────────────────────────────

class AcquisitionError(PhotoStudioError):
    """Upload or camera capture rejected locally (no network call was made)."""
    user_message = "We could not read that photo. Please try another one."


# ── Validation ───────────────────────────────────────────────────────────────

class ValidationTransportError(PhotoStudioError):
    user_message = "We could not analyze your photo. Please try again."


# ── Generation ───────────────────────────────────────────────────────────────

class GenerationError(PhotoStudioError):
    user_message = "The image could not be generated. Please try again."


class GenerationSafetyBlocked(GenerationError):
    user_message = (
        "The request was blocked by the model's safety policy. "
        "Please try a different photo or adjust your options."
    )


class GenerationRecitationBlocked(GenerationError):
    user_message = (
        "The model stopped because the result resembled existing protected content. "
        "Please try different options."
    )


class GenerationNoCandidate(GenerationError):
    user_message = "The model did not return an image. Please try again or use a different photo."


class GenerationTransportError(GenerationError):
    user_message = "We could not reach the image service. Please try again in a moment."


# ── Workflow ─────────────────────────────────────────────────────────────────

class InvalidTransition(PhotoStudioError):
    """An operation was requested in a state that does not allow it."""
    user_message = "That action is not available right now."
