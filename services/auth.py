"""
Token lifecycle: signup, login, refresh rotation, logout and password
recovery on top of DBStorage.

Every operation that writes token rows runs inside a single
``storage.transaction()`` so a failure part-way leaves no partial state.
Refresh rotation revokes the presented token with a conditional update;
when two requests race on the same token only one of them sees the row
change and the other fails as an invalid refresh token.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Tuple

from models.password_reset_token import PasswordResetToken
from models.refresh_token import RefreshToken
from models.user import User
from utils.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidRefreshTokenError,
    InvalidResetTokenError,
    InvalidTokenError,
    NotFoundError,
)
from utils.security import (
    REFRESH,
    TokenClaims,
    TokenPair,
    TokenSigner,
    from_timestamp,
    generate_reset_token,
    utcnow,
    verify_password,
)
from utils.validators import (
    DEFAULT_ROLE,
    MIN_PASSWORD_LENGTH,
    NAME_MAX_LENGTH,
    is_valid_email,
    is_valid_name,
    is_valid_password,
    is_valid_phone,
    is_valid_role,
    sanitize,
)

logger = logging.getLogger(__name__)

PASSWORD_POLICY = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
_NO_USER = ""


@dataclass
class AuthResult:
    tokens: TokenPair
    user: User


def _check_password_policy(password):
    if not is_valid_password(password):
        raise InvalidInputError(PASSWORD_POLICY)


def _check_email(email):
    if not is_valid_email(email):
        raise InvalidInputError("Invalid email format.")


def _profile_fields(first_name, last_name, phone_number):
    """Trimmed names and phone; an empty phone number is stored as None."""
    first_name, last_name, phone_number = sanitize(first_name), sanitize(last_name), sanitize(phone_number)
    if not (is_valid_name(first_name) and is_valid_name(last_name)):
        raise InvalidInputError(f"Names must be at most {NAME_MAX_LENGTH} characters long.")
    if phone_number and not is_valid_phone(phone_number):
        raise InvalidInputError("Invalid phone number.")
    return first_name, last_name, phone_number or None


class AuthService:
    """Issues, validates, rotates and revokes access/refresh token pairs."""

    def __init__(
        self,
        storage,
        signer: TokenSigner,
        notifier=None,
        *,
        base_url: str = "http://localhost:8080",
        reset_token_ttl: timedelta = timedelta(hours=1),
        single_session_login: bool = True,
        revoke_sessions_on_password_change: bool = True,
        allow_admin_signup: bool = False,
    ):
        self.storage = storage
        self.signer = signer
        self.notifier = notifier
        self.base_url = base_url
        self.reset_token_ttl = reset_token_ttl
        self.single_session_login = single_session_login
        self.revoke_sessions_on_password_change = revoke_sessions_on_password_change
        self.allow_admin_signup = allow_admin_signup

    # -- token primitives -------------------------------------------------

    def validate_token(self, token: str) -> TokenClaims:
        return self.signer.validate(token)

    def _issue(self, session, user: User) -> TokenPair:
        """Sign a new pair and stage its refresh record in session."""
        pair = self.signer.issue_pair(user.id, user.email, user.role)
        session.add(
            RefreshToken.for_token(
                pair.refresh_token,
                user_id=user.id,
                expires_at=from_timestamp(pair.refresh_token_expires_at),
            )
        )
        return pair

    # -- signup / login ---------------------------------------------------

    def signup(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        role: Optional[str] = None,
    ) -> AuthResult:
        email = sanitize(email)
        _check_email(email)
        _check_password_policy(password)
        role = role or DEFAULT_ROLE
        if not is_valid_role(role):
            raise InvalidInputError("Invalid role.")
        if role == "admin" and not self.allow_admin_signup:
            raise InvalidInputError("Admin accounts cannot be created through signup.")
        first_name, last_name, phone_number = _profile_fields(first_name, last_name, phone_number)

        with self.storage.transaction() as session:
            if User.email_taken(session, email):
                raise ConflictError("Email already registered")
            user = User(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                phone_number=phone_number,
                role=role,
                is_active=True,
            )
            session.add(user)
            session.flush()
            pair = self._issue(session, user)

        logger.info("User %s signed up with role %s", user.id, role)
        return AuthResult(tokens=pair, user=user)

    def login(self, email: str, password: str, wants_admin: bool = False) -> AuthResult:
        role = "admin" if wants_admin else "customer"
        email = sanitize(email)

        with self.storage.transaction() as session:
            user = User.find_active_by_email(session, email) if is_valid_email(email) else None
            # verify_password runs even without a user so timing does not leak existence
            password_ok = verify_password(password or "", user.password_hash if user else None)
            if user is None or not password_ok or user.role != role:
                logger.info("Login rejected")
                raise InvalidCredentialsError()

            if self.single_session_login:
                revoked = RefreshToken.revoke_all_for_user(session, user.id)
                if revoked:
                    logger.debug("Revoked %d earlier session(s) of user %s", revoked, user.id)
            pair = self._issue(session, user)

        logger.info("User %s logged in", user.id)
        return AuthResult(tokens=pair, user=user)

    # -- rotation ---------------------------------------------------------

    def refresh(self, refresh_token: str) -> AuthResult:
        try:
            claims = self.signer.validate(refresh_token)
        except InvalidTokenError:
            raise InvalidRefreshTokenError() from None
        if claims.type != REFRESH:
            raise InvalidRefreshTokenError()

        with self.storage.transaction() as session:
            record = RefreshToken.find_valid(session, refresh_token, utcnow())
            if record is None or record.user_id != claims.user_id:
                logger.warning("Refresh with unknown, expired or revoked token for user %s", claims.user_id)
                raise InvalidRefreshTokenError()

            user = User.find_active_by_id(session, record.user_id)
            if user is None:
                raise InvalidRefreshTokenError()

            if not RefreshToken.revoke_if_active(session, record.id):
                logger.warning("Concurrent rotation lost for user %s", user.id)
                raise InvalidRefreshTokenError()
            pair = self._issue(session, user)

        logger.debug("Rotated refresh token for user %s", user.id)
        return AuthResult(tokens=pair, user=user)

    # -- logout -----------------------------------------------------------

    def logout(self, refresh_token: str, user_id: Optional[str] = None) -> bool:
        """Revoke one refresh token. Unknown or already revoked tokens are not an error."""
        if not refresh_token:
            return False
        with self.storage.transaction() as session:
            revoked = RefreshToken.revoke_by_token(session, refresh_token, user_id=user_id)
        return revoked > 0

    def logout_all(self, user_id: str) -> int:
        with self.storage.transaction() as session:
            revoked = RefreshToken.revoke_all_for_user(session, user_id)
        logger.info("Revoked %d session(s) of user %s", revoked, user_id)
        return revoked

    # -- password recovery ------------------------------------------------

    def forgot_password(self, email: str) -> None:
        """Same outcome whether or not the email belongs to an account."""
        email = sanitize(email)
        _check_email(email)

        token = generate_reset_token()
        with self.storage.transaction() as session:
            user = User.find_active_by_email(session, email)
            # Unknown emails run the same UPDATE against no rows
            PasswordResetToken.invalidate_unused_for_user(session, user.id if user else _NO_USER)
            if user is None:
                return None
            session.add(
                PasswordResetToken.for_token(token, user_id=user.id, expires_at=utcnow() + self.reset_token_ttl)
            )

        logger.info("Password reset requested for user %s", user.id)
        if self.notifier is not None:
            try:
                self.notifier.send_password_reset_email(user.email, token, self.base_url)
            except Exception:
                logger.exception("Failed to send password reset email to user %s", user.id)
        return None

    def _valid_reset(self, session, token: str) -> Tuple[PasswordResetToken, User]:
        if not token:
            raise InvalidResetTokenError()
        record = PasswordResetToken.find_valid(session, token, utcnow())
        if record is None:
            raise InvalidResetTokenError()
        user = User.find_active_by_id(session, record.user_id)
        if user is None:
            raise InvalidResetTokenError()
        return record, user

    def validate_reset_token(self, token: str) -> str:
        """Return the owner's email; the token stays usable."""
        with self.storage.transaction() as session:
            _, user = self._valid_reset(session, token)
            return user.email

    def reset_password(self, token: str, new_password: str) -> None:
        _check_password_policy(new_password)
        with self.storage.transaction() as session:
            record, user = self._valid_reset(session, token)
            if not PasswordResetToken.mark_used(session, record.id):
                raise InvalidResetTokenError()
            user.password = new_password
            RefreshToken.revoke_all_for_user(session, user.id)
        logger.info("Password reset completed for user %s", user.id)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        _check_password_policy(new_password)
        with self.storage.transaction() as session:
            user = User.find_active_by_id(session, user_id)
            if user is None:
                raise InvalidCredentialsError()
            if not user.verify_password(current_password or ""):
                raise InvalidCredentialsError("Current password is incorrect")
            user.password = new_password
            if self.revoke_sessions_on_password_change:
                RefreshToken.revoke_all_for_user(session, user.id)
        logger.info("Password changed for user %s", user_id)

    # -- profile and administration ----------------------------------------

    def get_profile(self, user_id: str) -> User:
        with self.storage.transaction() as session:
            user = User.find_active_by_id(session, user_id)
            if user is None:
                raise NotFoundError()
            return user

    def update_profile(
        self,
        user_id: str,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> User:
        email = sanitize(email)
        _check_email(email)
        first_name, last_name, phone_number = _profile_fields(first_name, last_name, phone_number)
        with self.storage.transaction() as session:
            user = User.find_active_by_id(session, user_id)
            if user is None:
                raise NotFoundError()
            if email != user.email and User.email_taken(session, email, exclude_id=user.id):
                raise ConflictError("Email already registered")
            user.email = email
            user.first_name = first_name
            user.last_name = last_name
            user.phone_number = phone_number
        return user

    def list_users(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        with self.storage.transaction() as session:
            query = session.query(User)
            total = query.count()
            rows = (
                query.order_by(User.created_at.asc(), User.email.asc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        return rows, total

    def deactivate_user(self, user_id: str) -> User:
        """Soft-delete an identity and end all of its sessions."""
        with self.storage.transaction() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError()
            user.is_active = False
            RefreshToken.revoke_all_for_user(session, user.id)
        logger.info("User %s deactivated", user_id)
        return user
