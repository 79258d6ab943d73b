"""JSON API routes: the browser resolves gestures, the server owns the regions."""

import asyncio
import io
import logging
import shutil
import uuid
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file

from waveclip.models import EXPORT_FORMATS, Region
from waveclip.session import WaveformSession
from waveclip.sinks import MemorySink

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

DEFAULT_WIDTH = 512

# In-memory session store: session_id -> WaveformSession
_sessions: dict[str, WaveformSession] = {}


def _region_json(region: Region | None) -> dict | None:
    if region is None:
        return None
    return {"start": region.start, "end": region.end}


def _float_arg(name: str) -> float | None:
    try:
        return float(request.args[name])
    except (KeyError, ValueError):
        return None


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    try:
        width = int(request.form.get("width", DEFAULT_WIDTH))
    except ValueError:
        return jsonify({"error": "width must be an integer"}), 400

    session_id = uuid.uuid4().hex[:12]
    session_dir = Path(current_app.config["WORK_DIR"]) / session_id
    session_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or ".wav"
    input_path = session_dir / f"input{ext}"
    f.save(input_path)

    try:
        session = WaveformSession.load(input_path, width, sink=MemorySink(keep=1))
    except Exception:
        shutil.rmtree(session_dir, ignore_errors=True)
        raise

    _sessions[session_id] = session
    logger.info("Session %s opened for %s", session_id, f.filename)
    return jsonify({"session_id": session_id, "filename": f.filename, "duration": session.audio.duration})


@bp.route("/api/sessions/<session_id>")
def session_info(session_id: str):
    if session_id not in _sessions:
        return jsonify({"error": "Session not found"}), 404

    session = _sessions[session_id]
    return jsonify({
        "duration": session.audio.duration,
        "channels": session.audio.channels,
        "sample_rate": session.audio.sample_rate,
        "width": session.width,
        "regions": [_region_json(r) for r in session.regions],
    })


@bp.route("/api/sessions/<session_id>/regions", methods=["POST"])
def add_region(session_id: str):
    if session_id not in _sessions:
        return jsonify({"error": "Session not found"}), 404

    data = request.get_json() or {}
    try:
        x0, x1 = float(data["start"]), float(data["end"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"error": "start and end are required numbers"}), 400

    # Non-finite bounds raise ValueError, answered with 400 by the app
    region = _sessions[session_id].range_dragged(x0, x1)
    if region is None:
        return jsonify({"region": None}), 200
    return jsonify({"region": _region_json(region)}), 201


@bp.route("/api/sessions/<session_id>/regions/at")
def region_at(session_id: str):
    if session_id not in _sessions:
        return jsonify({"error": "Session not found"}), 404

    x = _float_arg("x")
    if x is None:
        return jsonify({"error": "x is required"}), 400

    region = _sessions[session_id].region_at(x)
    if region is None:
        return jsonify({"error": "No region at this point"}), 404
    return jsonify({"region": _region_json(region)})


@bp.route("/api/sessions/<session_id>/regions", methods=["DELETE"])
def remove_region(session_id: str):
    if session_id not in _sessions:
        return jsonify({"error": "Session not found"}), 404

    x = _float_arg("x")
    if x is None:
        return jsonify({"error": "x is required"}), 400

    region = _sessions[session_id].range_double_clicked(x)
    if region is None:
        return jsonify({"error": "No region at this point"}), 404
    return jsonify({"removed": _region_json(region)})


@bp.route("/api/sessions/<session_id>/peaks")
def peaks(session_id: str):
    if session_id not in _sessions:
        return jsonify({"error": "Session not found"}), 404

    bins = int(request.args.get("bins", 0)) or None
    data = _sessions[session_id].peaks(bins)
    return jsonify({"peaks": data.tolist()})


@bp.route("/api/sessions/<session_id>/export", methods=["POST"])
def export(session_id: str):
    if session_id not in _sessions:
        return jsonify({"error": "Session not found"}), 404

    session = _sessions[session_id]
    data = request.get_json() or {}
    fmt = data.get("format", "wav")
    if fmt not in EXPORT_FORMATS:
        return jsonify({"error": f"Unsupported format {fmt!r}"}), 400

    try:
        x = float(data["x"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"error": "x is required"}), 400

    region = session.region_at(x)
    if region is None:
        return jsonify({"error": "No region at this point"}), 404

    result = asyncio.run(session.export(region, fmt))
    delivery = session.sink.last
    return send_file(
        io.BytesIO(delivery.data),
        mimetype=result.mime_type,
        as_attachment=True,
        download_name=result.filename,
    )
