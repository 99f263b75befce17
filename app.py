import io
import os
import logging
import secrets
import traceback
from datetime import datetime

from flask import (
    Flask,
    Response,
    abort,
    redirect,
    render_template,
    request,
    send_file,
    session,
    url_for,
)
from dotenv import load_dotenv

import reference_data
from ai_client import DEFAULT_PROVIDER, get_client
from errors import AcquisitionError, InvalidTransition
from features import ACTIVE_FEATURE, FEATURES
from media import MAX_UPLOAD_BYTES, acquire_capture, acquire_upload
from sessions import DEFAULT_TTL_SECONDS, SessionStore
from site_config import SITE_CONFIG

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024  # 16 MB; photos themselves are capped at 4 MiB
app.secret_key = os.environ.get("FLASK_SECRET_KEY") or secrets.token_hex(32)
app.extensions["session_store"] = SessionStore(
    get_client,
    ttl_seconds=int(os.environ.get("SESSION_TTL_SECONDS", DEFAULT_TTL_SECONDS)),
)

# Only static file serving bypasses the API-key check
_NO_KEY_ALLOWED = {"static", "robots_txt"}

ERROR_LOG = "last_error.log"


# ── Inject site config into every template automatically ──────────────────────
@app.context_processor
def inject_globals():
    return {"site": SITE_CONFIG, "features": FEATURES, "max_upload_mb": MAX_UPLOAD_BYTES // (1024 * 1024)}


@app.before_request
def require_api_key():
    if request.endpoint in _NO_KEY_ALLOWED:
        return
    if os.environ.get("AI_PROVIDER", DEFAULT_PROVIDER) != "gemini_api":
        return
    if not os.environ.get("GEMINI_API_KEY"):
        return render_template("setup.html"), 503


# ── Helpers ───────────────────────────────────────────────────────────────────

def _log_error(context: str, exc: Exception) -> None:
    """Write the last error with timestamp to last_error.log (no user data)."""
    with open(ERROR_LOG, "w", encoding="utf-8") as f:
        f.write(f"[{datetime.now().isoformat(timespec='seconds')}] {context}\n\n")
        if exc.__traceback__:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=f)
        else:
            f.write(f"{type(exc).__name__}: {exc}\n")


def _session_id() -> str:
    if "sid" not in session:
        session["sid"] = SessionStore.new_id()
    return session["sid"]


def _controller(feature_key: str):
    if feature_key not in FEATURES:
        abort(404)
    return app.extensions["session_store"].controller(_session_id(), feature_key)


def _back(feature_key: str):
    return redirect(url_for("feature", feature_key=feature_key))


def _spinner_message(feature_key: str, controller, stage: str) -> str:
    cfg = FEATURES[feature_key]
    if stage == "validating":
        return cfg["validating_message"]
    variant = controller.handler.variant_label(controller.options)
    return cfg["generating_message"].format(variant=variant)


# ── Error pages ───────────────────────────────────────────────────────────────

@app.errorhandler(404)
def not_found(_e):
    return render_template("error.html", message="Page not found."), 404


@app.errorhandler(InvalidTransition)
def invalid_transition(e):
    log.info("Rejected action: %s", e)
    return render_template("error.html", message=e.user_message, feature_key=(request.view_args or {}).get("feature_key")), 409


@app.errorhandler(413)
def too_large(_e):
    return render_template("error.html", message="The upload is too large. Photos must be 4MB or smaller."), 413


@app.errorhandler(500)
def server_error(e):
    original = getattr(e, "original_exception", None) or e
    _log_error(f"{request.method} {request.path}", original)
    return render_template("error.html", message="Something went wrong on our side. Please try again."), 500


# ── Routes ────────────────────────────────────────────────────────────────────

@app.route("/robots.txt")
def robots_txt():
    return Response("User-agent: *\nDisallow: /\n", mimetype="text/plain")


@app.route("/")
def index():
    return redirect(url_for("feature", feature_key=ACTIVE_FEATURE))


@app.route("/<feature_key>")
def feature(feature_key):
    controller = _controller(feature_key)
    return render_template(
        "feature.html",
        feature_key=feature_key,
        feature=FEATURES[feature_key],
        controller=controller,
        state=controller.state,
        options=controller.options,
        ref=reference_data,
        validating_message=_spinner_message(feature_key, controller, "validating"),
        generating_message=_spinner_message(feature_key, controller, "generating"),
    )


@app.route("/<feature_key>/upload", methods=["POST"])
def upload(feature_key):
    controller = _controller(feature_key)
    # Options chosen next to the uploader travel with the photo.
    controller.update_options(request.form)

    try:
        if request.form.get("capture"):
            payload = acquire_capture(request.form["capture"])
        else:
            payload = acquire_upload(request.files.get("image"))
    except AcquisitionError as e:
        controller.reject(e)
        return _back(feature_key)

    controller.submit(payload)
    return _back(feature_key)


@app.route("/<feature_key>/options", methods=["POST"])
def update_options(feature_key):
    _controller(feature_key).update_options(request.form)
    return _back(feature_key)


@app.route("/<feature_key>/generate", methods=["POST"])
def generate(feature_key):
    controller = _controller(feature_key)
    controller.update_options(request.form)
    controller.generate()
    return _back(feature_key)


@app.route("/<feature_key>/select", methods=["POST"])
def select(feature_key):
    controller = _controller(feature_key)
    try:
        index = int(request.form.get("index", ""))
        controller.select(index)
    except (ValueError, IndexError):
        return render_template("error.html", message="Please pick one of the generated images.",
                               feature_key=feature_key), 400
    return _back(feature_key)


@app.route("/<feature_key>/download")
def download(feature_key):
    filename, data, mime_type = _controller(feature_key).download()
    return send_file(io.BytesIO(data), mimetype=mime_type, as_attachment=True, download_name=filename)


@app.route("/<feature_key>/reset", methods=["POST"])
def reset(feature_key):
    _controller(feature_key).reset()
    return _back(feature_key)


if __name__ == "__main__":
    print("Starting on http://localhost:5000")
    app.run(debug=True, port=5000)
