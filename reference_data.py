# ─────────────────────────────────────────────────────────────────────────────
#  Static reference data
#
#  Country photo specifications, attire choices, portrait styles and the
#  option lists shown in the portrait options panel.  Read-only.
# ─────────────────────────────────────────────────────────────────────────────
from dataclasses import dataclass


@dataclass(frozen=True)
class Option:
    label: str
    value: str


@dataclass(frozen=True)
class CountrySpec:
    name:                str
    dimensions:          str
    aspect_ratio:        float               # width / height
    head_height_pct:     tuple[int, int]     # chin to top of hair, % of photo height
    allowed_backgrounds: tuple[str, ...]


@dataclass(frozen=True)
class PortraitStyle:
    name:      str
    prompt:    str
    thumbnail: str


PASSPORT_COUNTRIES: tuple[CountrySpec, ...] = (
    CountrySpec(
        name="United States",
        dimensions="2x2 inches",
        aspect_ratio=1.0,
        head_height_pct=(50, 69),
        allowed_backgrounds=("white", "off-white"),
    ),
    CountrySpec(
        name="Schengen Area / EU",
        dimensions="35x45 mm",
        aspect_ratio=35 / 45,
        head_height_pct=(70, 80),
        allowed_backgrounds=("light grey", "light blue"),
    ),
    CountrySpec(
        name="United Kingdom",
        dimensions="35x45 mm",
        aspect_ratio=35 / 45,
        head_height_pct=(70, 80),
        allowed_backgrounds=("cream", "light grey"),
    ),
    CountrySpec(
        name="Canada",
        dimensions="50x70 mm",
        aspect_ratio=50 / 70,
        head_height_pct=(44, 51),   # 31–36 mm head on a 70 mm photo
        allowed_backgrounds=("white", "light-coloured"),
    ),
    CountrySpec(
        name="China",
        dimensions="33x48 mm",
        aspect_ratio=33 / 48,
        head_height_pct=(58, 75),   # 28–33 mm head on a 48 mm photo
        allowed_backgrounds=("white",),
    ),
)

NO_ATTIRE_CHANGE = "no change to attire"

FORMAL_ATTIRE: tuple[Option, ...] = (
    Option("Dark Suit & Tie", "a dark suit with a white shirt and a tie"),
    Option("Black Blazer",    "a professional black blazer"),
    Option("Collared Shirt",  "a simple collared shirt"),
    Option("No Change",       NO_ATTIRE_CHANGE),
)

PASSPORT_GUIDELINES: tuple[str, ...] = (
    "Use a recent, clear, in-focus photo.",
    "Face the camera directly with a neutral expression.",
    "Ensure your eyes are open and clearly visible.",
    "Avoid shadows on your face or in the background.",
    "We'll replace the background and adjust lighting for you.",
)

_THUMBS = "https://storage.googleapis.com/gemini-ui-params/demo-assets/thumbnails"

PORTRAIT_STYLES: tuple[PortraitStyle, ...] = (
    PortraitStyle(
        name="Corporate Headshot",
        prompt=(
            "Generate a professional corporate headshot. The person should be wearing business "
            "attire against a blurred office background. The lighting should be soft and "
            "flattering, creating a confident and approachable look. High-resolution, photorealistic."
        ),
        thumbnail=f"{_THUMBS}/corporate.jpg",
    ),
    PortraitStyle(
        name="Cinematic",
        prompt=(
            "Create a cinematic-style portrait with dramatic lighting (Rembrandt or split lighting). "
            "The background should be dark and moody. The person's expression should be thoughtful "
            "and intense. Emphasize texture and detail. High-resolution, photorealistic."
        ),
        thumbnail=f"{_THUMBS}/cinematic.jpg",
    ),
    PortraitStyle(
        name="Vintage Film",
        prompt=(
            "Generate a portrait that looks like it was shot on vintage film (e.g., Kodachrome or "
            "Polaroid). Add subtle film grain, warm tones, and soft focus. The background should be "
            "a retro-style setting. The person should have a nostalgic expression. "
            "High-resolution, photorealistic."
        ),
        thumbnail=f"{_THUMBS}/vintage.jpg",
    ),
    PortraitStyle(
        name="Fantasy Art",
        prompt=(
            "Transform the person into a fantasy character (e.g., an elf or a mage). Add fantastical "
            "elements like glowing magical effects, intricate fantasy armor or robes, and an enchanted "
            "forest or castle background. The style should be epic and illustrative. "
            "High-resolution, painterly."
        ),
        thumbnail=f"{_THUMBS}/fantasy.jpg",
    ),
    PortraitStyle(
        name="Minimalist B&W",
        prompt=(
            "Create a powerful black and white portrait. Use high contrast lighting to sculpt the "
            "face. The background should be a solid dark grey. The focus should be entirely on the "
            "person's expression and form. Timeless and classic. High-resolution, photorealistic."
        ),
        thumbnail=f"{_THUMBS}/bw.jpg",
    ),
    PortraitStyle(
        name="Futuristic Sci-Fi",
        prompt=(
            "Generate a futuristic, sci-fi themed portrait. The person should be wearing sleek, "
            "modern clothing or cybernetic enhancements. The background should be a neon-lit "
            "cityscape or a starship interior. Use cool, blue and purple tones. "
            "High-resolution, photorealistic."
        ),
        thumbnail=f"{_THUMBS}/scifi.jpg",
    ),
)

# Empty value means "leave it to the style".
PORTRAIT_SCENES: tuple[Option, ...] = (
    Option("Style Default",  ""),
    Option("Studio Backdrop", "a clean photo studio backdrop"),
    Option("City Street",     "a softly blurred city street"),
    Option("Nature",          "an outdoor natural setting with greenery"),
    Option("Modern Office",   "a bright modern office"),
    Option("Beach at Sunset", "a beach at golden-hour sunset"),
)

PORTRAIT_POSES: tuple[Option, ...] = (
    Option("Keep Original",  ""),
    Option("Head-on",        "facing the camera directly, shoulders square"),
    Option("Three-quarter",  "body angled slightly away with the head turned toward the camera"),
    Option("Arms Crossed",   "standing with arms crossed confidently"),
)

PORTRAIT_EXPRESSIONS: tuple[Option, ...] = (
    Option("Keep Original", ""),
    Option("Warm Smile",    "a warm, natural smile"),
    Option("Confident",     "a confident, composed expression"),
    Option("Serious",       "a serious, thoughtful expression"),
)

ASPECT_RATIOS: tuple[Option, ...] = (
    Option("Portrait 3:4",  "3:4"),
    Option("Square 1:1",    "1:1"),
    Option("Portrait 2:3",  "2:3"),
    Option("Landscape 4:3", "4:3"),
    Option("Wide 16:9",     "16:9"),
)


def find_country(name: str) -> CountrySpec | None:
    return next((c for c in PASSPORT_COUNTRIES if c.name == name), None)


def find_style(name: str) -> PortraitStyle | None:
    return next((s for s in PORTRAIT_STYLES if s.name == name), None)


def option_values(options: tuple[Option, ...]) -> set[str]:
    return {o.value for o in options}
