# ─────────────────────────────────────────────────────────────────────────────
#  Feature registry
#
#  Each feature maps to a handler module in handlers/ and gets its own
#  workflow controller per browser session.  Features are shown in the
#  mode toggle in the order they appear here.
#
#  Per-feature config fields:
#    handler                : module name in handlers/ (e.g. "passport")
#    name                   : label shown in the mode toggle
#    description            : one-line description under the toggle
#    candidate_count        : images generated per run (1 or 2)
#    collect_options        : pause after validation for the options panel
#                              (False = generate right away with the options
#                              chosen next to the uploader)
#    keep_payload_on_failure: on generation failure, return to the options
#                              panel with the photo kept (True) or to the
#                              uploader with the photo discarded (False)
#    validation_rules       : conditions that make a photo unusable; sent to
#                              the model in the validation prompt
#    upload_message         : text inside the upload drop zone
#    validating_message     : spinner text while the photo is checked
#    generating_message     : spinner text while images are generated
#                              ({variant} is replaced by the country/style)
# ─────────────────────────────────────────────────────────────────────────────

_BASE_RULES = [
    "it is not a photo of a person",
    "the face is completely obscured",
    "the photo is too blurry to make out the face",
]

_DEFAULT_FLAGS = {
    "candidate_count":         1,
    "collect_options":         False,
    "keep_payload_on_failure": False,
    "validation_rules":        _BASE_RULES,
    "validating_message":      "Analyzing your photo...",
}

FEATURES: dict[str, dict] = {

    "passport": {
        **_DEFAULT_FLAGS,
        "handler":            "passport",
        "name":               "Passport Photo",
        "description":        "Convert any photo into a passport photo that follows your country's rules.",
        "validation_rules":   [*_BASE_RULES, "the face is turned at a sharp angle away from the camera"],
        "upload_message":     "Upload a photo to convert",
        "generating_message": "Generating {variant} passport photo...",
    },

    "portrait": {
        **_DEFAULT_FLAGS,
        "handler":                 "portrait",
        "name":                    "Portrait Picture",
        "description":             "Turn a selfie into two stylised portraits to choose from.",
        "candidate_count":         2,
        "collect_options":         True,
        "keep_payload_on_failure": True,
        "upload_message":          "Upload a photo to create a portrait",
        "validating_message":      "Checking your photo...",
        "generating_message":      "Creating your {variant} portrait...",
    },

}

# ── Default feature shown on the landing page ────────────────────────────────
ACTIVE_FEATURE = "passport"
