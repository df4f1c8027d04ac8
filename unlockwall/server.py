# unlockwall/server.py
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask, jsonify, request

from .codec import read_image_file
from .display import cell_view, grid_view
from .errors import CellUnavailable, StaleSession, UnlockWallError
from .session import SessionController

log = logging.getLogger(__name__)


def _error(message: str, code: int = 400):
    return jsonify({"status": "error", "message": message}), code


def create_app(controller: SessionController) -> Flask:
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "role": "wall"})

    @app.get("/grid")
    def api_grid():
        return jsonify(grid_view(controller.grid))

    @app.get("/cells/<int:index>")
    def api_cell(index: int):
        try:
            return jsonify(cell_view(controller.grid.cell(index)))
        except ValueError as e:
            return _error(str(e), 404)

    @app.post("/cells/<int:index>/play")
    def api_play(index: int):
        try:
            session = controller.begin(index)
        except CellUnavailable as e:
            return _error(str(e), 409)
        return jsonify({"status": "ok", "session_id": session.session_id, "cell": index})

    @app.get("/session")
    def api_session():
        return jsonify(controller.view())

    @app.post("/session/select")
    def api_select():
        data = request.get_json(force=True, silent=True) or {}
        try:
            card = int(data["card"])
            return jsonify(controller.select(card))
        except (KeyError, TypeError, ValueError) as e:
            return _error(f"bad card: {e}")

    @app.post("/session/upload")
    def api_upload():
        try:
            session_id = int(request.form["session_id"])
        except (KeyError, ValueError):
            return _error("session_id is required")

        try:
            data = _read_upload(request.files.get("logo"))
            image = controller.upload(session_id, data)
        except StaleSession as e:
            return _error(str(e), 409)
        except UnlockWallError as e:
            return _error(str(e))
        return jsonify({"status": "ok", "session_id": session_id, "image": image})

    return app


def _read_upload(storage) -> Optional[bytes]:
    if storage is None or not storage.filename:
        return None
    return read_image_file(storage.stream)
