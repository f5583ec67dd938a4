# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Passwords are hashed with bcrypt (cost factor 12). Cashiers sign up
themselves and cannot log in until an admin approves them; admins are created
from the CLI and are approved on creation.

Session tokens are managed separately (see session_service.py).
"""

import re

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..errors import AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Sale, User, ROLES, ROLE_ADMIN, ROLE_CASHIER, THEMES
from app.time_utils import utcnow
from . import session_service


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - 8 to 100 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if len(password) > 100:
        raise PasswordValidationError("Password cannot exceed 100 characters")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def create_user(
    username: str,
    email: str,
    password: str,
    role: str = ROLE_CASHIER,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Cashiers start unapproved; admins are approved immediately.

    Raises:
        ValidationError: malformed username/email/role, weak password
        ConflictError: username or email already taken
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()

    if not USERNAME_RE.match(username):
        raise ValidationError("Username must be 3-64 characters: letters, digits, '.', '_' or '-'")
    if not EMAIL_RE.match(email) or len(email) > 255:
        raise ValidationError("Invalid email address")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()

    if existing:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_approved=(role == ROLE_ADMIN),
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username or email already exists")
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """
    Check credentials by username or email.

    Returns the User if credentials are valid and the account is active,
    None otherwise. Raises ForbiddenError for a cashier still awaiting
    approval (valid credentials, but not allowed in yet).
    """
    identifier = (identifier or "").strip()
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier.lower()),
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        return None

    if user.role != ROLE_ADMIN and not user.is_approved:
        raise ForbiddenError("Cashier account pending approval. Ask your administrator to approve you.")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def list_cashiers(is_approved: bool | None = None, search: str | None = None) -> list[User]:
    query = db.session.query(User).filter(User.role == ROLE_CASHIER)

    if is_approved is not None:
        query = query.filter(User.is_approved.is_(is_approved))

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(User.username.ilike(pattern), User.email.ilike(pattern)))

    return query.order_by(User.created_at.asc(), User.username.asc()).all()


def get_cashier(user_id: str) -> User:
    user = db.session.query(User).filter_by(id=user_id, role=ROLE_CASHIER).first()
    if not user:
        raise NotFoundError("Cashier not found")
    return user


def approve_cashier(user_id: str) -> User:
    user = get_cashier(user_id)
    if user.is_approved:
        raise ConflictError("Cashier is already approved")

    user.is_approved = True
    db.session.commit()
    return user


# =============================================================================
# Own account
# =============================================================================

PROFILE_FIELDS = {"firstname", "lastname", "othername", "phone", "other_phone", "avatar_url"}


def _get_user(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(user_id: str, patch: dict) -> User:
    """Apply a validated profile patch; keys outside PROFILE_FIELDS are ignored."""
    user = _get_user(user_id)
    for k, v in patch.items():
        if k in PROFILE_FIELDS:
            setattr(user, k, v)
    db.session.commit()
    return user


def change_password(
    user_id: str,
    current_password: str,
    new_password: str,
    keep_token: str | None = None,
) -> None:
    """
    Replace the password after checking the current one.

    Every other session of the user is revoked; keep_token (the session making
    the request) stays valid.

    Raises:
        AuthError: current password is wrong
        ValidationError: new password is weak or unchanged
    """
    user = _get_user(user_id)

    if not verify_password(current_password or "", user.password_hash):
        raise AuthError("Incorrect password")

    if verify_password(new_password or "", user.password_hash):
        raise ValidationError("New password must be different from current password")

    user.password_hash = hash_password(new_password)
    db.session.commit()

    session_service.revoke_user_sessions(user_id, "Password changed", keep_token=keep_token)


def change_theme(user_id: str, theme: str) -> User:
    if theme not in THEMES:
        raise ValidationError(f"theme_preference must be one of: {', '.join(THEMES)}")
    user = _get_user(user_id)
    user.theme_preference = theme
    db.session.commit()
    return user


def delete_account(user_id: str, password: str) -> bool:
    """
    Close the caller's own account after re-checking the password.

    Accounts with sales history are deactivated so receipts keep their owner;
    others are removed along with their sessions.

    Returns:
        True if the row was deleted, False if it was deactivated
    """
    user = _get_user(user_id)

    if not verify_password(password or "", user.password_hash):
        raise AuthError("Incorrect password")

    has_sales = db.session.query(Sale.id).filter(Sale.user_id == user.id).first() is not None

    if has_sales:
        session_service.revoke_user_sessions(user.id, "Account deleted")
        user.is_active = False
        db.session.commit()
        return False

    for s in list(user.sessions):
        db.session.delete(s)
    db.session.delete(user)
    db.session.commit()
    return True
