from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from services.errors import InvalidAccessToken


def jwt_required():
    """Verify the Bearer access token and expose its subject as g.current_user_id."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                raise InvalidAccessToken("Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()

            issuer = current_app.extensions["auth"].issuer
            decoded = issuer.verify(token)

            g.current_user_id = decoded["id"]
            return fn(*args, **kwargs)

        return wrapper

    return decorator
