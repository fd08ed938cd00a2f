# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- Self-registration creates a plain `user` account
- Login returns a bearer token for the Authorization header
- Logout revokes the presented token
"""

from flask import Blueprint, request, jsonify, g

from ..extensions import db
from ..models import User
from ..services import auth_service
from ..services import session_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_admin
from .responses import error, server_error


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Register a new user and log them in.

    Body: {email, password, full_name} (fullName is accepted too).
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    full_name = data.get("full_name") or data.get("fullName")

    if not all([email, password, full_name]):
        return error("email, password and full_name required", 400)

    try:
        user = auth_service.create_user(email=email, password=password, full_name=full_name)
        _session, token = session_service.create_session(user.id)
    except ConflictError as e:
        return error(str(e), 409)
    except ValidationError as e:
        return error(str(e), 400)
    except Exception:
        return server_error("Failed to register user")

    return jsonify({"user": user.to_dict(), "token": token}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not all([email, password]):
        return error("email and password required", 400)

    try:
        user = auth_service.authenticate(email, password)
        if not user:
            return error("Invalid credentials", 401)
        session, token = session_service.create_session(user.id)
    except Exception:
        return server_error("Failed to login user")

    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "expires_at": session.to_dict()["expires_at"],
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.auth_token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.get("/users")
@require_auth
@require_admin
def list_users_route():
    users = db.session.query(User).order_by(User.created_at.asc(), User.id.asc()).all()
    return jsonify([u.to_dict() for u in users]), 200
