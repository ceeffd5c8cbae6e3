"""Flask application factory for the reference annotation store."""
from __future__ import annotations

import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from ..config import ServerConfig
from .events import EventBroadcaster
from .storage import AnnotationStore


def create_app(config: Optional[ServerConfig] = None) -> Flask:
    config = config or ServerConfig.from_env()
    config.validate()
    os.makedirs(config.data_dir, exist_ok=True)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STORE_CONFIG"] = config
    app.extensions["gloss_store"] = AnnotationStore(config.data_dir)
    app.extensions["gloss_events"] = EventBroadcaster()

    CORS(app, origins=config.allowed_origins, methods=["GET", "POST", "PUT", "DELETE"])

    from .routes import bp
    app.register_blueprint(bp, url_prefix="/api")

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    return app
