"""
Centralized site configuration.
Edit this file to update the static texts displayed on the pages of the site.
"""

SITE_CONFIG = {
    "title":   "ID Photo Studio",
    "tagline": "Passport photos and portraits from a single snapshot.",
    # Privacy notice: displayed at the bottom of every page
    "privacy_title": "Your Privacy is Important",
    "privacy_text": (
        "We do not store your images. All processing is done in-session, and your photos are "
        "permanently deleted after you download your result or leave the page."
    ),
    # Shown above the portrait uploader
    "portrait_disclaimer": (
        "AI-generated portraits are artistic interpretations and may not perfectly resemble the "
        "original photo. Facial features are preserved, but style, clothing, and background are altered."
    ),
    # Shown under every result
    "legal_title": "User Responsibility",
    "legal_text": (
        "You are solely responsible for the images you upload and the content you generate. "
        "This tool helps you create photos that meet common requirements, but it is not a "
        "guaranteed compliance service. Verify that the final photo meets the current requirements "
        "of the authority you are submitting it to."
    ),
}
