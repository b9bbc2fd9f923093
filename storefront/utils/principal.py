# storefront/utils/principal.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request


@dataclass(frozen=True)
class Anonymous:
    authenticated = False


@dataclass(frozen=True)
class Authenticated:
    user_id: int
    role: str

    authenticated = True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


Principal = Union[Anonymous, Authenticated]


def current_principal() -> Principal:
    """Who is calling. A missing token is Anonymous; a bad one is rejected by flask-jwt-extended."""
    verify_jwt_in_request(optional=True)
    uid = get_jwt_identity()
    if uid is None:
        return Anonymous()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        return Anonymous()
    return Authenticated(user_id=uid, role=get_jwt().get("role", "user"))
