"""
JWT profile claims and middleware for the Flask API.

Tokens are issued by the identity service; this side only verifies the
signature and turns the claims into a UserProfile for the current request.
"""

from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import current_app, jsonify, request

from healthgate.config import JWT_ALGORITHM, SECRET_KEY
from healthgate.scope import profile_from_claims


def verify_token(token: str, secret: str = SECRET_KEY) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def _bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split(" ")
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
        return parts[1]
    return None


def profile_required(f):
    """Decorator that attaches the caller's UserProfile to the request."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if "Authorization" in request.headers:
            token = _bearer_token()
            if not token:
                return jsonify({"error": "Invalid authorization header format"}), 401
        else:
            token = request.args.get("token")

        if not token:
            return jsonify({"error": "Authentication token is missing"}), 401

        payload = verify_token(token, current_app.config.get("JWT_SECRET_KEY", SECRET_KEY))
        if payload is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        request.profile = profile_from_claims(payload)
        return f(*args, **kwargs)

    return decorated
