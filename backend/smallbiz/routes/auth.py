# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/register        business sign-up (tenant + owner), returns a token
- POST /api/login           e-mail/password, returns a token
- POST /api/logout          revokes the presented token
- GET  /api/user            current user with tenant
- POST /api/staff/register  owner adds a staff member to their tenant
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import AuthError, PasswordValidationError
from ..validation import ValidationError
from ..decorators import bearer_token, require_auth, require_capability, require_tenant


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _client_info() -> dict:
    return {
        "user_agent": request.headers.get("User-Agent"),
        "ip_address": request.remote_addr,
    }


@auth_bp.post("/register")
def register_route():
    """Create a business account with its owner and sign the owner in."""
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.register_tenant(
            tenant_name=data.get("tenant_name"),
            domain=data.get("domain"),
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
        )
        _, token = session_service.create_session(user, **_client_info())
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except PasswordValidationError as e:
        return jsonify({"error": str(e), "errors": {"password": [str(e)]}}), 422
    except Exception:
        current_app.logger.exception("Failed to register tenant")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "message": "Registration successful",
        "user": user.to_dict(),
        "tenant": user.tenant.to_dict(),
        "token": token,
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be sent as "Authorization: Bearer <token>" together with
    X-Tenant-ID on tenant-scoped routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        errors = {}
        if not email:
            errors["email"] = ["email is required"]
        if not password:
            errors["password"] = ["password is required"]
        return jsonify({"error": "email and password required", "errors": errors}), 422

    try:
        user = auth_service.authenticate(email, password)
    except AuthError as e:
        return jsonify({"error": str(e)}), 401

    _, token = session_service.create_session(user, **_client_info())

    return jsonify({
        "message": "Login successful",
        "user": user.to_dict(),
        "token": token,
    })


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out successfully"})


@auth_bp.get("/user")
@require_auth
def current_user_route():
    user = g.current_user
    data = user.to_dict()
    data["tenant"] = user.tenant.to_dict()
    return jsonify({"user": data})


@auth_bp.post("/staff/register")
@require_auth
@require_tenant
@require_capability("REGISTER_STAFF")
def register_staff_route():
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.create_staff(
            tenant_id=g.tenant.id,
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            password_confirmation=data.get("password_confirmation"),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except Exception:
        current_app.logger.exception("Failed to register staff member")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "message": "Staff member added successfully",
        "user": user.to_dict(),
    }), 201
