# gloss_annote/server/auth.py
from __future__ import annotations

import functools
import hmac
from typing import Optional

from flask import current_app, jsonify, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer


TOKEN_SALT = "gloss-annote-auth"
VIDEO_SALT = "gloss-annote-video"


def _serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=salt)


def check_password(candidate: str) -> bool:
    expected = current_app.config["STORE_CONFIG"].password
    return hmac.compare_digest(str(candidate or "").encode(), expected.encode())


def issue_token() -> str:
    return _serializer(TOKEN_SALT).dumps({"sub": "annotator"})


def verify_token(token: str) -> bool:
    try:
        _serializer(TOKEN_SALT).loads(token, max_age=current_app.config["STORE_CONFIG"].token_ttl_s)
    except (BadSignature, SignatureExpired):
        return False
    return True


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def require_auth(view):
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        token = parse_bearer_token(request.headers.get("Authorization"))
        if not token or not verify_token(token):
            return jsonify({"error": "Authentication required"}), 401
        return view(*args, **kwargs)
    return wrapper


# -----------------------------
# Signed video URLs
# -----------------------------

def sign_video(task_id: str) -> str:
    return _serializer(VIDEO_SALT).dumps({"task": task_id})


def unsign_video(token: str) -> Optional[str]:
    """Task id of a video token, or None when it is invalid or older than the URL TTL."""
    try:
        data = _serializer(VIDEO_SALT).loads(
            token, max_age=current_app.config["STORE_CONFIG"].video_url_ttl_s
        )
    except (BadSignature, SignatureExpired):
        return None
    return str(data.get("task")) if isinstance(data, dict) else None
