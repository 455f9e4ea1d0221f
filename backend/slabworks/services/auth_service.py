# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Employee authentication.

WHY: Every sale records the employee who wrote it (seller_id), so every
action must be attributable to a logged-in user.

MULTI-TENANT: Users belong to exactly one company. Email uniqueness is
company-scoped; login by email searches all active companies unless a
company_id is given.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters
- Session tokens managed separately (see session_service.py)
"""

import bcrypt

from ..extensions import db
from ..models import Company, User
from slabworks.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


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
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    name: str,
    email: str,
    password: str,
    company_id: int,
    is_admin: bool = False,
) -> User:
    """
    Create new employee with a bcrypt password hash.

    Raises:
        ValueError: company missing/inactive or email taken within the company
        PasswordValidationError: password too weak
    """
    company = db.session.query(Company).filter_by(id=company_id).first()
    if not company:
        raise ValueError("Company not found")
    if not company.is_active:
        raise ValueError("Company is not active")

    email = email.strip().lower()
    existing = db.session.query(User).filter_by(company_id=company_id, email=email).first()
    if existing:
        raise ValueError("Email already exists in this company")

    user = User(
        company_id=company_id,
        name=name,
        email=email,
        password_hash=hash_password(password),
        is_employee=True,
        is_admin=is_admin,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str, company_id: int | None = None) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials are valid and the company is active, None
    otherwise. Updates last_login_at on success.
    """
    query = (
        db.session.query(User)
        .join(Company, Company.id == User.company_id)
        .filter(
            User.email == email.strip().lower(),
            User.is_active.is_(True),
            Company.is_active.is_(True),
        )
    )
    if company_id is not None:
        query = query.filter(User.company_id == company_id)

    for user in query.order_by(User.id).all():
        if verify_password(password, user.password_hash):
            user.last_login_at = utcnow()
            db.session.commit()
            return user

    return None
