# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

WHY: Every action must be attributable to a user of exactly one tenant.
Uses bcrypt for password hashing and validates password strength.

MULTI-TENANT: Registering a business creates the tenant and its owner in one
commit. Staff users are always created inside the registering owner's tenant.
E-mail addresses are globally unique because login is by e-mail alone.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, mixed case, a digit and a special character
- Session tokens managed separately (see session_service.py)
- Authentication rejects inactive users and inactive tenants
"""

import logging
import re

import bcrypt

from ..extensions import db
from ..models import Tenant, User
from ..models.auth import ROLE_OWNER, ROLE_STAFF
from ..models.tenancy import DEFAULT_TENANT_SETTINGS
from ..validation import EMAIL_RE, FieldErrors
from smallbiz.time_utils import utcnow

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when credentials are rejected."""
    pass


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (strength-checked first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash verifies as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _validate_user_fields(errors: FieldErrors, name, email, password) -> None:
    if not isinstance(name, str) or not name.strip():
        errors.add("name", "name is required")
    elif len(name.strip()) > 255:
        errors.add("name", "name exceeds max length 255")

    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        errors.add("email", "email must be a valid email address")
    elif db.session.query(User.id).filter(User.email == email.strip().lower()).first() is not None:
        errors.add("email", "This email is already registered.")

    if not isinstance(password, str) or not password:
        errors.add("password", "password is required")
    else:
        try:
            validate_password_strength(password)
        except PasswordValidationError as exc:
            errors.add("password", str(exc))


def register_tenant(
    tenant_name: str,
    domain: str | None,
    name: str,
    email: str,
    password: str,
) -> User:
    """
    Create an active tenant with default settings and its owner user.

    Raises ValidationError (field errors) for bad input, duplicate e-mail or
    duplicate domain.
    """
    errors = FieldErrors()

    if not isinstance(tenant_name, str) or not tenant_name.strip():
        errors.add("tenant_name", "tenant_name is required")

    if domain is not None:
        if not isinstance(domain, str) or not domain.strip():
            errors.add("domain", "domain must be a non-empty string")
        elif db.session.query(Tenant.id).filter(Tenant.domain == domain.strip().lower()).first() is not None:
            errors.add("domain", "This domain is already registered.")

    _validate_user_fields(errors, name, email, password)
    errors.raise_if_any()

    tenant = Tenant(
        name=tenant_name.strip(),
        domain=domain.strip().lower() if domain else None,
        settings=dict(DEFAULT_TENANT_SETTINGS),
        is_active=True,
    )
    db.session.add(tenant)
    db.session.flush()

    user = User(
        tenant_id=tenant.id,
        name=name.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=ROLE_OWNER,
    )
    db.session.add(user)
    db.session.commit()

    logger.info("Registered tenant %s with owner user %s", tenant.id, user.id)
    return user


def create_staff(
    tenant_id: int,
    name: str,
    email: str,
    password: str,
    password_confirmation: str | None,
) -> User:
    """Add a staff member to the owner's tenant."""
    errors = FieldErrors()
    _validate_user_fields(errors, name, email, password)
    if isinstance(password, str) and password and password != password_confirmation:
        errors.add("password", "The password confirmation does not match.")
    errors.raise_if_any()

    user = User(
        tenant_id=tenant_id,
        name=name.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=ROLE_STAFF,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Updates last_login_at on success.

    Raises:
        AuthError: unknown e-mail, wrong password, inactive user or inactive tenant
    """
    if not isinstance(email, str) or not isinstance(password, str):
        raise AuthError("The provided credentials are incorrect.")

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()

    if not user or not verify_password(password, user.password_hash):
        raise AuthError("The provided credentials are incorrect.")

    if not user.is_active:
        raise AuthError("Your account is not active.")

    if not user.tenant or not user.tenant.is_active:
        raise AuthError("Your business account is not active.")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
