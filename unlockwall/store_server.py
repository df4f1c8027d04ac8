# unlockwall/store_server.py
"""Key-value store with versioned namespace snapshots, shared by every wall viewer."""
from __future__ import annotations
import logging
from threading import Lock
from typing import Dict

from flask import Flask, jsonify, request

from .store import children

log = logging.getLogger(__name__)


def create_app() -> Flask:
    app = Flask(__name__)

    store: Dict[str, str] = {}
    state = {"version": 0}
    lock = Lock()

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "role": "store", "version": state["version"]})

    @app.post("/write")
    def write():
        data = request.get_json(force=True, silent=True) or {}
        if "key" not in data or "value" not in data:
            return jsonify({"status": "error", "message": "key and value are required"}), 400
        key = str(data["key"]).strip("/")
        value = str(data["value"])
        if not key:
            return jsonify({"status": "error", "message": "empty key"}), 400

        # last write wins
        with lock:
            store[key] = value
            state["version"] += 1
            version = state["version"]
        log.info("write %s (%d bytes) -> version %d", key, len(value), version)
        return jsonify({"status": "ok", "version": version})

    @app.get("/read/<path:key>")
    def read(key: str):
        with lock:
            if key not in store:
                return jsonify({"status": "error", "message": "not found"}), 404
            return jsonify({"status": "ok", "key": key, "value": store[key]})

    @app.get("/snapshot/<path:namespace>")
    def snapshot(namespace: str):
        with lock:
            return jsonify({"status": "ok", "version": state["version"],
                            "values": children(store, namespace)})

    return app
