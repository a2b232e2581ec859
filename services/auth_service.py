"""
Auth service: registry users, credentials and bearer tokens.

Handles:
- Admin-gated user registration with a password policy
- Login with bcrypt-verified passwords
- Issuing and verifying signed JWTs (HS256, issuer/audience/expiry checked)
- Profile reads and edits, password changes

Roles are carried in the token but enforced only at the HTTP boundary.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID, uuid4

import bcrypt
import jwt

from domain.errors import (
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from domain.time import utc_now
from domain.user import Role, User, normalize_email, validate_person_name
from repositories.store import UserRepository
from services.settings import Settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72

_SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

_INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True, slots=True)
class NewUser:
    email: str
    password: str
    first_name: str
    last_name: str
    role: Role = Role.STAFF


@dataclass(frozen=True, slots=True)
class PasswordValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    strength: str = "weak"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Verified identity carried by a bearer token."""

    user_id: UUID
    email: str
    role: Role
    first_name: str
    last_name: str


@dataclass(frozen=True, slots=True)
class AuthResult:
    user: User
    token: str
    expires_in: str


def password_strength(password: str) -> str:
    """Score a password as weak, medium or strong."""

    score = sum(
        (
            len(password) >= 8,
            len(password) >= 12,
            bool(re.search(r"[a-z]", password)),
            bool(re.search(r"[A-Z]", password)),
            bool(re.search(r"\d", password)),
            bool(_SPECIAL_CHARACTERS.search(password)),
        )
    )
    if score < 3:
        return "weak"
    if score < 5:
        return "medium"
    return "strong"


class AuthService:
    """User accounts and token handling."""

    def __init__(self, users: UserRepository, settings: Settings) -> None:
        self._users = users
        self._settings = settings

    # -------------------------------------------------------------- passwords

    @staticmethod
    def validate_password(password: str) -> PasswordValidation:
        errors: List[str] = []
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            errors.append(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")
        if not re.search(r"[a-z]", password):
            errors.append("Password must contain at least one lowercase letter")
        if not re.search(r"\d", password):
            errors.append("Password must contain at least one number")
        return PasswordValidation(
            is_valid=not errors, errors=errors, strength=password_strength(password)
        )

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._settings.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def check_password(password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))

    def _require_policy(self, password: str) -> None:
        validation = self.validate_password(password)
        if not validation.is_valid:
            raise InvalidInputError("; ".join(validation.errors))

    # ----------------------------------------------------------------- users

    def register(self, data: NewUser) -> User:
        """
        Create a user account.

        Raises:
            InvalidInputError: email, name, role or password policy failed
            ConflictError: email already registered
        """

        email = normalize_email(data.email)
        if self._users.get_user_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        try:
            role = Role(data.role)
        except ValueError:
            raise InvalidInputError("Invalid role specified") from None

        first_name = validate_person_name("First name", data.first_name)
        last_name = validate_person_name("Last name", data.last_name)
        self._require_policy(data.password)

        now = utc_now()
        user = self._users.insert_user(
            User(
                user_id=uuid4(),
                email=email,
                password_hash=self.hash_password(data.password),
                role=role,
                first_name=first_name,
                last_name=last_name,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Registered %s user %s", user.role.value, user.email)
        return user

    def login(self, email: str, password: str) -> AuthResult:
        if not email or not password:
            raise InvalidInputError("Email and password are required")

        user = self._users.get_user_by_email(email.strip().lower())
        if user is None or not self.check_password(password, user.password_hash):
            logger.warning("Failed login attempt for %s", email.strip().lower())
            raise AuthenticationError(_INVALID_CREDENTIALS)

        logger.info("User %s logged in", user.email)
        return self._issue(user)

    def refresh_token(self, user_id: UUID) -> AuthResult:
        return self._issue(self.get_profile(user_id))

    def get_profile(self, user_id: UUID) -> User:
        user = self._users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: UUID, data: Mapping[str, Any]) -> User:
        """Edit first name, last name and/or email; other keys are ignored."""

        user = self.get_profile(user_id)
        changes: Dict[str, Any] = {}
        if data.get("first_name") is not None:
            changes["first_name"] = validate_person_name("First name", data["first_name"])
        if data.get("last_name") is not None:
            changes["last_name"] = validate_person_name("Last name", data["last_name"])
        if data.get("email") is not None:
            email = normalize_email(data["email"])
            if email != user.email:
                existing = self._users.get_user_by_email(email)
                if existing is not None and existing.user_id != user_id:
                    raise ConflictError("User with this email already exists")
                changes["email"] = email

        if not changes:
            raise InvalidInputError("No valid fields to update")

        updated = self._users.update_user(user_id, changes)
        if updated is None:
            raise NotFoundError("User not found")
        logger.info("Updated profile of user %s", updated.user_id)
        return updated

    def change_password(self, user_id: UUID, current_password: str, new_password: str) -> None:
        user = self.get_profile(user_id)
        if not self.check_password(current_password, user.password_hash):
            logger.warning("Rejected password change for user %s", user.email)
            raise AuthenticationError("Current password is incorrect")
        self._require_policy(new_password)

        self._users.update_user(user_id, {"password_hash": self.hash_password(new_password)})
        logger.info("Password changed for user %s", user.email)

    # ---------------------------------------------------------------- tokens

    def generate_token(self, user: User) -> str:
        now = utc_now()
        payload = {
            "sub": str(user.user_id),
            "email": user.email,
            "role": user.role.value,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "iat": now,
            "exp": now + timedelta(hours=self._settings.jwt_expires_hours),
        }
        return jwt.encode(payload, self._settings.require_jwt_secret(), algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> TokenClaims:
        """
        Decode and verify a bearer token.

        Raises:
            AuthenticationError: "Token has expired" or "Invalid token"
        """

        secret = self._settings.require_jwt_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
            )
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                email=payload["email"],
                role=Role(payload["role"]),
                first_name=payload["first_name"],
                last_name=payload["last_name"],
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired") from None
        except (jwt.InvalidTokenError, KeyError, ValueError):
            raise AuthenticationError("Invalid token") from None

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(
            user=user,
            token=self.generate_token(user),
            expires_in=self._settings.jwt_expires_in,
        )


__all__ = [
    "AuthResult",
    "AuthService",
    "NewUser",
    "PasswordValidation",
    "TokenClaims",
    "password_strength",
]
