"""
Handler: Portrait
Turns a photo into a stylised portrait. The style sets the overall look;
scene, pose, expression and aspect ratio refine it, and the user can add
free-text instructions.
"""
from pydantic import BaseModel, ConfigDict, field_validator

from reference_data import (
    ASPECT_RATIOS,
    PORTRAIT_EXPRESSIONS,
    PORTRAIT_POSES,
    PORTRAIT_SCENES,
    PORTRAIT_STYLES,
    PortraitStyle,
    find_style,
    option_values,
)

MAX_CUSTOM_PROMPT = 300

FIELDS = ("style", "scene", "pose", "expression", "aspect_ratio", "custom_prompt")


def _pick(value, options, default):
    return value if value in option_values(options) else default


class Options(BaseModel):
    model_config = ConfigDict(frozen=True)

    style:         str = PORTRAIT_STYLES[0].name
    scene:         str = PORTRAIT_SCENES[0].value
    pose:          str = PORTRAIT_POSES[0].value
    expression:    str = PORTRAIT_EXPRESSIONS[0].value
    aspect_ratio:  str = ASPECT_RATIOS[0].value
    custom_prompt: str = ""

    @field_validator("style", mode="before")
    @classmethod
    def _known_style(cls, v):
        return v if find_style(v or "") else PORTRAIT_STYLES[0].name

    @field_validator("scene", mode="before")
    @classmethod
    def _known_scene(cls, v):
        return _pick(v, PORTRAIT_SCENES, PORTRAIT_SCENES[0].value)

    @field_validator("pose", mode="before")
    @classmethod
    def _known_pose(cls, v):
        return _pick(v, PORTRAIT_POSES, PORTRAIT_POSES[0].value)

    @field_validator("expression", mode="before")
    @classmethod
    def _known_expression(cls, v):
        return _pick(v, PORTRAIT_EXPRESSIONS, PORTRAIT_EXPRESSIONS[0].value)

    @field_validator("aspect_ratio", mode="before")
    @classmethod
    def _known_ratio(cls, v):
        return _pick(v, ASPECT_RATIOS, ASPECT_RATIOS[0].value)

    @field_validator("custom_prompt", mode="before")
    @classmethod
    def _trim(cls, v):
        return " ".join(str(v or "").split())[:MAX_CUSTOM_PROMPT]

    @property
    def portrait_style(self) -> PortraitStyle:
        return find_style(self.style)


def default_options() -> Options:
    return Options()


def variant_label(options: Options) -> str:
    return options.style


def build_validation_prompt(options: Options, rules: list[str]) -> str:
    reasons = "".join(f"  - {rule}\n" for rule in rules)
    return (
        "Analyze this photo. Is it a clear photo of a person's face, suitable for use as a base "
        "for a creative portrait? The photo is valid if a person's face is reasonably clear and "
        "visible.\n\n"
        "The photo is invalid if any of the following is true:\n"
        f"{reasons}\n"
        'Return a JSON object with "isValid" (boolean) and "feedback" (string). '
        "Provide a simple reason if invalid."
    )


def build_generation_prompt(options: Options) -> str:
    details = []
    if options.scene:
        details.append(f"- **Scene**: Place the person in {options.scene}.")
    if options.pose:
        details.append(f"- **Pose**: The person is {options.pose}.")
    if options.expression:
        details.append(f"- **Expression**: The person has {options.expression}.")
    details.append(f"- **Aspect Ratio**: Compose the image at {options.aspect_ratio} (width:height).")

    return (
        "**PRIMARY DIRECTIVE: DO NOT CHANGE THE FACE. The generated image must look like the same "
        "person.** Do not alter the face, hair, head shape, or skin tone.\n\n"
        "**Task**: Transform the user's photo into a high-quality portrait based on the following "
        "style.\n\n"
        f"**Style**: {options.portrait_style.prompt}\n\n"
        "**Composition**:\n"
        + "\n".join(details) + "\n\n"
        f"**User's Additional Instructions**: {options.custom_prompt or 'None.'}\n\n"
        "Follow these rules:\n"
        "1.  **Identity Lock**: Preserve the person's exact facial features, skin tone, and core "
        "identity from the original photo.\n"
        "2.  **Apply Style**: Creatively apply the requested style to the background, clothing, "
        "lighting, and overall mood.\n"
        "3.  **Quality**: Produce a high-resolution, photorealistic, and aesthetically pleasing image."
    )
