from flask import request, g
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token

from . import bp
from ..model import User
from ..extensions import db
from ..utils.api import ok, err
from ..utils.decorators import login_required


def issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    full_name = (data.get("full_name") or "").strip()

    if not email:
        return err("Email required", 400)
    if not password or len(password) < 6:
        return err("Password required, min 6 chars", 400)
    if User.query.filter_by(email=email).first():
        return err("Email already registered", 409)

    # Bootstrap: very first account becomes admin
    is_first_user = db.session.query(User.id).count() == 0

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        full_name=full_name or None,
        role="admin" if is_first_user else "user",
    )
    db.session.add(user)
    db.session.commit()

    return ok("Account created successfully", {"user": user.as_dict(), "token": issue_token(user)}, status=201)


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return err("Email and password are required", 400)

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return err("Invalid email or password", 401)

    return ok("You've logged in successfully", {"user": user.as_dict(), "token": issue_token(user)})


@bp.get("/me")
@login_required
def me():
    user = db.session.get(User, g.principal.user_id)
    if not user:
        return err("user not found", 404)
    return ok("me", {"user": user.as_dict()})
