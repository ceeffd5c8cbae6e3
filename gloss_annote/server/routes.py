# gloss_annote/server/routes.py
from __future__ import annotations

import os

from flask import Blueprint, Response, current_app, jsonify, request, send_file, url_for

from ..logger import logger
from .auth import check_password, issue_token, require_auth, sign_video, unsign_video
from .storage import UnknownTaskError

bp = Blueprint("api", __name__)


def _store():
    return current_app.extensions["gloss_store"]


def _events():
    return current_app.extensions["gloss_events"]


@bp.route("/login", methods=["POST"])
def login():
    body = request.get_json(silent=True) or {}
    if not check_password(body.get("password", "")):
        logger.info("Rejected login from %s", request.remote_addr)
        return jsonify({"error": "Invalid password"}), 401
    return jsonify({"token": issue_token()})


@bp.route("/tasks")
@require_auth
def tasks():
    return jsonify(_store().categories())


@bp.route("/annotations")
@require_auth
def annotations():
    return jsonify(_store().annotations())


@bp.route("/annotations/import", methods=["POST"])
@require_auth
def import_annotations():
    payload = request.get_json(silent=True)
    count = _store().import_annotations(payload)
    _events().publish()
    return jsonify({"imported": count}), 201


@bp.route("/tasks/<task_id>/annotations", methods=["DELETE"])
@require_auth
def delete_task_annotations(task_id: str):
    _store().delete_task_annotations(task_id)
    _events().publish()
    return "", 204


@bp.route("/tasks/<task_id>/status", methods=["PUT"])
@require_auth
def update_status(task_id: str):
    body = request.get_json(silent=True) or {}
    status = _store().set_status(task_id, body.get("status"))
    _events().publish()
    return jsonify({"taskId": task_id, "status": status})


@bp.route("/signed-video-url/<task_id>")
@require_auth
def signed_video_url(task_id: str):
    if _store().find_task(task_id) is None:
        return jsonify({"error": "Task not found"}), 404
    url = url_for("api.video", token=sign_video(task_id), _external=True)
    return jsonify({"url": url})


@bp.route("/videos/<token>")
def video(token: str):
    task_id = unsign_video(token)
    if task_id is None:
        return jsonify({"error": "Video link is invalid or expired"}), 403
    task = _store().find_task(task_id)
    if task is None:
        return jsonify({"error": "Task not found"}), 404

    videos_dir = os.path.abspath(current_app.config["STORE_CONFIG"].videos_dir)
    path = os.path.abspath(os.path.join(videos_dir, str(task.get("video", ""))))
    if os.path.commonpath([videos_dir, path]) != videos_dir or not os.path.isfile(path):
        return jsonify({"error": "Video file not found"}), 404
    # conditional=True answers Range requests, which video players rely on for seeking
    return send_file(path, conditional=True)


@bp.route("/events")
@require_auth
def events():
    broadcaster = _events()
    q = broadcaster.subscribe()
    return Response(
        broadcaster.stream(q),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@bp.errorhandler(ValueError)
def bad_request(error):
    return jsonify({"error": str(error)}), 400


@bp.errorhandler(UnknownTaskError)
def unknown_task(error):
    return jsonify({"error": f"Task not found: {error.args[0] if error.args else ''}"}), 404
