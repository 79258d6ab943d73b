"""Flask application factory for the WaveClip web API."""

import logging
import tempfile
from pathlib import Path

from flask import Flask, jsonify

from waveclip.encoders.mp3 import EncodingError
from waveclip.extract import OutOfRange
from waveclip.ffutil import DecodeError, LoadError
from waveclip.timeaxis import InvalidDuration

logger = logging.getLogger(__name__)


def create_app(work_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="waveclip_"))
    app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024 * 1024  # 1 GB

    from waveclip.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    # Audio that loaded but cannot be processed
    @app.errorhandler(LoadError)
    @app.errorhandler(DecodeError)
    @app.errorhandler(InvalidDuration)
    @app.errorhandler(OutOfRange)
    @app.errorhandler(EncodingError)
    def unprocessable_audio(error):
        logger.warning("%s: %s", type(error).__name__, error)
        return jsonify({"error": str(error)}), 422

    # Bad request values rejected by the session (non-finite bounds, bins, width)
    @app.errorhandler(ValueError)
    def bad_value(error):
        return jsonify({"error": str(error)}), 400

    return app
