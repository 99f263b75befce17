"""
Handler: Passport Photo
Converts a photo into an official passport photo for the selected country:
plain background, head size within the country's bounds, optional attire
change, neutral pose and expression, country aspect ratio.
"""
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from reference_data import (
    FORMAL_ATTIRE,
    NO_ATTIRE_CHANGE,
    PASSPORT_COUNTRIES,
    CountrySpec,
    find_country,
    option_values,
)

FIELDS = ("country", "attire", "background")


class Options(BaseModel):
    model_config = ConfigDict(frozen=True)

    country:    str = PASSPORT_COUNTRIES[0].name
    attire:     str = NO_ATTIRE_CHANGE
    background: str = ""

    @model_validator(mode="before")
    @classmethod
    def _background_for_country(cls, data):
        # Background must be one the chosen country allows; default to its first.
        if isinstance(data, dict):
            data = dict(data)
            country = find_country(data.get("country") or "") or PASSPORT_COUNTRIES[0]
            if data.get("background") not in country.allowed_backgrounds:
                data["background"] = country.allowed_backgrounds[0]
        return data

    @field_validator("country", mode="before")
    @classmethod
    def _known_country(cls, v):
        return v if find_country(v or "") else PASSPORT_COUNTRIES[0].name

    @field_validator("attire", mode="before")
    @classmethod
    def _known_attire(cls, v):
        return v if v in option_values(FORMAL_ATTIRE) else NO_ATTIRE_CHANGE

    @property
    def spec(self) -> CountrySpec:
        return find_country(self.country)


def default_options() -> Options:
    return Options()


def variant_label(options: Options) -> str:
    return options.country


def _attire_clause(attire: str) -> str:
    if attire == NO_ATTIRE_CHANGE:
        return (
            "Keep the original clothing, but ensure it is simple and doesn't resemble a uniform. "
            "Remove any distracting jewelry."
        )
    return (
        f"Change the person's clothing to '{attire}'. The new clothing must be professional, "
        "simple, and not obscure their neck."
    )


def build_validation_prompt(options: Options, rules: list[str]) -> str:
    reasons = "".join(f"  - {rule}\n" for rule in rules)
    return (
        f"Analyze this photo for its suitability as a base for a passport photo for {options.country}. "
        "The photo is valid if a person's face is reasonably clear, visible, and facing forward.\n\n"
        "The photo is invalid if any of the following is true:\n"
        f"{reasons}\n"
        'Return a JSON object with "isValid" (boolean) and "feedback" (string). '
        "Provide a simple reason if invalid."
    )


def build_generation_prompt(options: Options) -> str:
    spec = options.spec
    lo, hi = spec.head_height_pct
    return (
        "**PRIMARY DIRECTIVE: DO NOT CHANGE THE FACE, HAIR, OR HEAD SHAPE.**\n\n"
        "You are an expert passport photo generator. Your absolute priority is to preserve the "
        "person's identity perfectly. You are explicitly forbidden from altering the person's "
        "facial features, hair, skin tone, or head shape. The result must be the same person. "
        "Any change to the person's face is a complete failure.\n\n"
        "**Task**: Convert the user's photo into an official passport photo that meets the "
        f"requirements for **{spec.name}**.\n\n"
        "Follow these specifications precisely:\n\n"
        "1.  **Identity Lock**: Before any creative work, lock in the subject's exact facial "
        "likeness, hair, and head shape from the original photo. This is your foundational "
        "constraint.\n\n"
        "2.  **Background**: Replace the original background with a solid, uniform, and "
        f"featureless **{options.background}** color.\n\n"
        "3.  **Head Position & Size**: The head must be centered. The head height (from chin to "
        f"top of hair) must be between **{lo}% and {hi}%** of the total photo height.\n\n"
        f"4.  **Attire**: {_attire_clause(options.attire)}\n\n"
        "5.  **Expression & Pose**: Adjust the pose so the person is facing directly forward. "
        "Their expression must be neutral with both eyes open and mouth closed.\n\n"
        "6.  **Lighting & Quality**: Correct any uneven lighting and remove shadows on the face "
        "and background. The final photo must be clear, in focus, and have natural, unaltered "
        "skin tones. Do not apply any artistic filters.\n\n"
        "7.  **Final Output**: The final image must have an aspect ratio of "
        f"**{spec.aspect_ratio:.3f}** (width/height), matching a {spec.dimensions} photo. "
        "It must be a high-resolution, photorealistic image suitable for official use."
    )
