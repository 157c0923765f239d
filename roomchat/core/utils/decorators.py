"""Reusable decorators for controllers."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from flask import jsonify, request

from roomchat.core.auth.middleware import SessionGate
from roomchat.core.errors import Unauthenticated

F = TypeVar("F", bound=Callable)


def session_required(fn: F) -> F:
    """Run the session gate and pass the verified identity as ``identity=``."""

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        try:
            identity = SessionGate().authenticate(request.headers.get("Authorization"))
        except Unauthenticated as exc:
            return jsonify(exc.to_dict()), exc.status
        return fn(*args, identity=identity, **kwargs)

    return wrapper  # type: ignore[return-value]
