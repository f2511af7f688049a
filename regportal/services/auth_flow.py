"""Registration, login and credential lifecycle.

Pure business logic with no HTTP dependencies. Raises API exceptions that the
application maps to status codes.
"""
import logging
import re
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..config import settings
from ..core.exceptions import (
    BaseAPIException,
    InternalError,
    NotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)
from ..core.logging import BusinessLogger, SecurityLogger
from ..core.passwords import PasswordHasher, password_hasher
from ..core.tokens import BEARER_PREFIX, RESET_PREFIX, TokenIssuer, token_issuer
from ..models.history import LoginAttempt
from ..models.user import User
from ..schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    RegistrationRequest,
    ResetPasswordRequest,
)
from ..schemas.user import ProfileUpdateRequest, UserResponse
from .credential_store import CredentialStore

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]{5,20}")
NAME_PATTERN = re.compile(r"[A-Za-z '-]+")
PHONE_PATTERN = re.compile(r"[\d \-+()]{7,}")
PASSWORD_SPECIALS = "@$!%*?&"

NAME_ERROR = "Name may only contain letters, spaces, hyphens and apostrophes"

INVALID_CREDENTIALS = "Invalid username or password"


def password_policy_errors(password: str) -> List[str]:
    """Reasons ``password`` is too weak; empty when acceptable."""
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not any(char in PASSWORD_SPECIALS for char in password):
        errors.append(f"Password must contain one of {PASSWORD_SPECIALS}")
    return errors


def _check_new_password(password: str, field: str = "newPassword") -> None:
    errors = password_policy_errors(password)
    if errors:
        raise ValidationFailedError(
            "Password does not meet requirements",
            fields=[field],
            details={"errors": {field: errors}},
        )


def _age_on(born: date, today: date) -> int:
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def _contact_errors(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> dict:
    """Format problems with the supplied name and phone values."""
    errors = {}
    for field, value in (("firstName", first_name), ("lastName", last_name)):
        if value is not None and not NAME_PATTERN.fullmatch(value):
            errors[field] = [NAME_ERROR]
    if phone is not None and (not PHONE_PATTERN.fullmatch(phone) or not re.search(r"\d", phone)):
        errors["phone"] = ["Invalid phone number"]
    return errors


def _require(**values: Optional[str]) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationFailedError("All fields are required", fields=missing)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Classify storage failures raised inside the block."""
    try:
        yield
    except BaseAPIException:
        raise
    except OperationalError as e:
        logger.exception("Store unavailable during %s", operation)
        raise StoreUnavailableError() from e
    except SQLAlchemyError as e:
        logger.exception("Store error during %s", operation)
        raise InternalError(f"An error occurred during {operation}") from e


class AuthFlowController:
    """Orchestrates the credential lifecycle over a credential store."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher = password_hasher,
        tokens: TokenIssuer = token_issuer,
    ):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def _validate_registration(self, request: RegistrationRequest) -> None:
        missing = request.missing_fields()
        if missing:
            raise ValidationFailedError(
                "Missing required fields",
                fields=missing,
                details={"missingFields": missing},
            )

        if request.password != request.confirm_password:
            raise ValidationFailedError("Passwords do not match", fields=["confirmPassword"])

        errors = {}
        if not USERNAME_PATTERN.fullmatch(request.username):
            errors["username"] = [
                "Username must be 5-20 characters of letters, numbers and underscores"
            ]
        errors.update(
            _contact_errors(request.first_name, request.last_name, request.phone)
        )
        if _age_on(request.date_of_birth, date.today()) < settings.auth.minimum_age:
            errors["dateOfBirth"] = [f"You must be at least {settings.auth.minimum_age} years old"]
        password_errors = password_policy_errors(request.password)
        if password_errors:
            errors["password"] = password_errors

        if errors:
            raise ValidationFailedError(
                "Invalid registration data",
                fields=list(errors),
                details={"errors": errors},
            )

    async def register(self, request: RegistrationRequest) -> int:
        """Create an account and return the new user id."""
        self._validate_registration(request)

        with store_errors("registration"):
            user_id = await self.store.create_user(request.profile(), request.password)

        BusinessLogger.log_user_registered(user_id, request.username, bool(request.newsletter))
        return user_id

    async def login(
        self,
        request: LoginRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResponse:
        """Authenticate and issue a bearer token.

        Unknown identities and wrong passwords get the same response.
        """
        if not request.username or not request.password:
            raise ValidationFailedError(
                "Username and password are required",
                fields=[f for f, v in (("username", request.username), ("password", request.password)) if not v],
            )

        with store_errors("login"):
            user = await self.store.find_by_identity(request.username)

            if user is None:
                await self.store.record_login(None, ip_address, user_agent, False)
                SecurityLogger.log_login_attempt(
                    request.username, False, ip_address=ip_address,
                    user_agent=user_agent, failure_reason="unknown_identity"
                )
                raise UnauthorizedError(INVALID_CREDENTIALS)

            if not self.hasher.verify(request.password, user.password_hash):
                user_id = user.id
                await self.store.record_login(user_id, ip_address, user_agent, False)
                SecurityLogger.log_login_attempt(
                    request.username, False, user_id=user_id, ip_address=ip_address,
                    user_agent=user_agent, failure_reason="wrong_password"
                )
                raise UnauthorizedError(INVALID_CREDENTIALS)

            await self.store.touch_last_login(user)
            # Snapshot before the audit write, which may roll the session back
            profile = UserResponse.model_validate(user)
            await self.store.record_login(profile.id, ip_address, user_agent, True)

        SecurityLogger.log_login_attempt(
            request.username, True, user_id=profile.id,
            ip_address=ip_address, user_agent=user_agent
        )

        if request.remember_me:
            expires_in = settings.auth.remember_me_expire_days * 24 * 60 * 60
        else:
            expires_in = settings.auth.access_token_expire_minutes * 60

        return LoginResponse(
            token=self.tokens.issue_bearer_token(profile.id, remember_me=request.remember_me),
            expires_in=expires_in,
            user=profile,
        )

    async def authenticate(self, token: Optional[str]) -> User:
        """Resolve a bearer token to its user."""
        if not token:
            raise UnauthorizedError("Unauthorized")

        user_id = self.tokens.parse_user_id(token, BEARER_PREFIX)
        if user_id is None:
            raise UnauthorizedError("Invalid token")

        with store_errors("authentication"):
            user = await self.store.find_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        return user

    async def change_password(self, token: Optional[str], request: PasswordChangeRequest) -> None:
        if not token:
            raise UnauthorizedError("Unauthorized")
        _require(currentPassword=request.current_password, newPassword=request.new_password)

        user = await self.authenticate(token)
        if not self.hasher.verify(request.current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")
        _check_new_password(request.new_password)

        user_id = user.id
        with store_errors("password change"):
            await self.store.set_password(user, request.new_password)
        BusinessLogger.log_password_changed(user_id, reason="change")

    async def forgot_password(self, request: ForgotPasswordRequest) -> ForgotPasswordResponse:
        """Issue a reset token for the account registered under an email."""
        _require(email=request.email)

        with store_errors("password reset request"):
            user = await self.store.find_by_email(request.email)
        if user is None:
            raise NotFoundError("Email not found in our system")

        reset_token = self.tokens.issue_reset_token(user.id)

        if settings.auth.reset_token_in_response:
            SecurityLogger.log_reset_token_issued(user.id, user.email)
            return ForgotPasswordResponse(
                message="Email verified successfully",
                reset_token=reset_token,
                user_id=user.id,
            )

        # Out-of-band delivery: the log is the delivery channel
        SecurityLogger.log_reset_token_issued(user.id, user.email, reset_token=reset_token)
        return ForgotPasswordResponse(
            message="Password reset instructions have been sent to your email"
        )

    async def reset_password(self, request: ResetPasswordRequest) -> None:
        _require(
            email=request.email,
            resetToken=request.reset_token,
            newPassword=request.new_password,
        )

        with store_errors("password reset"):
            user = await self.store.find_by_email(request.email)
        if user is None:
            raise NotFoundError("User not found")

        token_user_id = self.tokens.parse_user_id(request.reset_token, RESET_PREFIX)
        if token_user_id is None or token_user_id != user.id:
            raise UnauthorizedError("Invalid or expired reset token")
        _check_new_password(request.new_password)

        user_id = user.id
        with store_errors("password reset"):
            await self.store.set_password(user, request.new_password)
        BusinessLogger.log_password_changed(user_id, reason="reset")

    async def update_profile(self, token: Optional[str], request: ProfileUpdateRequest) -> UserResponse:
        user = await self.authenticate(token)
        fields = request.model_dump(exclude_unset=True)
        errors = _contact_errors(
            fields.get("first_name"), fields.get("last_name"), fields.get("phone")
        )
        if errors:
            raise ValidationFailedError(
                "Invalid profile data",
                fields=list(errors),
                details={"errors": errors},
            )

        with store_errors("profile update"):
            changed = await self.store.update_profile(user, fields)
        profile = UserResponse.model_validate(user)

        if changed:
            BusinessLogger.log_profile_updated(profile.id, changed)
        return profile

    async def login_history(self, token: Optional[str], limit: int = 10) -> List[LoginAttempt]:
        user = await self.authenticate(token)
        with store_errors("login history"):
            return await self.store.list_login_history(user.id, limit)

    async def list_users(self) -> List[User]:
        with store_errors("listing registrations"):
            return await self.store.list_users()
