"""Credential store: users, password history and login history."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from ..core.exceptions import DuplicateIdentityError
from ..core.passwords import PasswordHasher, password_hasher
from ..models.base import utcnow
from ..models.history import LoginAttempt, PasswordHistory
from ..models.user import User

logger = logging.getLogger(__name__)

# Fields a user may change after registration
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "city",
    "state",
    "zipcode",
    "country",
)


def _duplicate_field(error: IntegrityError) -> Optional[str]:
    """Name the identity column behind a unique-constraint violation."""
    message = str(error.orig).lower()
    for field in ("email", "username"):
        if field in message:
            return field
    return None


class CredentialStore:
    """Persistence for accounts and their audit trails.

    Every write commits on its own. The password-history and login-attempt
    appends are best-effort: a failure is logged and rolled back without
    affecting the primary write.
    """

    def __init__(self, session: AsyncSession, hasher: PasswordHasher = password_hasher):
        self.session = session
        self.hasher = hasher

    async def _find_identity_conflict(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> Optional[str]:
        if email is not None:
            stmt = select(User.id).where(User.email == email)
            if exclude_id is not None:
                stmt = stmt.where(User.id != exclude_id)
            if await self.session.scalar(stmt.limit(1)) is not None:
                return "email"
        if username is not None:
            stmt = select(User.id).where(User.username == username)
            if await self.session.scalar(stmt.limit(1)) is not None:
                return "username"
        return None

    async def _append_password_history(self, user_id: int, password_hash: str) -> None:
        self.session.add(PasswordHistory(user_id=user_id, password_hash=password_hash))
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("Error saving password history for user %s", user_id)

    async def create_user(self, profile: Dict[str, Any], password: str) -> int:
        """Insert a user with a hashed password and return its id."""
        conflict = await self._find_identity_conflict(
            email=profile.get("email"), username=profile.get("username")
        )
        if conflict:
            raise DuplicateIdentityError(conflict)

        password_hash = self.hasher.hash(password)
        now = utcnow()
        user = User(
            **profile,
            password_hash=password_hash,
            registration_date=now,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)

        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent registration
            await self.session.rollback()
            field = _duplicate_field(e)
            if field is None:
                raise
            raise DuplicateIdentityError(field) from e

        user_id = user.id
        await self._append_password_history(user_id, password_hash)
        return user_id

    async def find_by_identity(self, username_or_email: str) -> Optional[User]:
        """Get user by exact username or email."""
        stmt = (
            select(User)
            .where(or_(User.username == username_or_email, User.email == username_or_email))
            .order_by(User.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        stmt = select(User).where(User.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return await self.session.get(User, user_id)

    async def record_login(
        self,
        user_id: Optional[int],
        ip_address: Optional[str],
        user_agent: Optional[str],
        success: bool,
    ) -> None:
        """Append a login attempt. Never raises storage errors."""
        self.session.add(
            LoginAttempt(
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                success=success,
            )
        )
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("Error recording login attempt for user %s", user_id)

    async def touch_last_login(self, user: User) -> None:
        now = utcnow()
        user.last_login = now
        user.updated_at = now
        await self.session.commit()

    async def set_password(self, user: User, new_password: str) -> None:
        """Replace the password digest and record it in the history."""
        password_hash = self.hasher.hash(new_password)
        user.password_hash = password_hash
        user.updated_at = utcnow()
        await self.session.commit()
        await self._append_password_history(user.id, password_hash)

    async def update_profile(self, user: User, fields: Dict[str, Any]) -> List[str]:
        """Overwrite mutable profile fields and return the names changed.

        Username and password are never touched here.
        """
        changes = {
            name: value
            for name, value in fields.items()
            if name in PROFILE_FIELDS and value is not None
        }
        if not changes:
            return []

        if "email" in changes and changes["email"] != user.email:
            if await self._find_identity_conflict(email=changes["email"], exclude_id=user.id):
                raise DuplicateIdentityError("email")

        for name, value in changes.items():
            setattr(user, name, value)
        user.updated_at = utcnow()

        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if _duplicate_field(e) != "email":
                raise
            raise DuplicateIdentityError("email") from e

        return sorted(changes)

    async def list_users(self) -> List[User]:
        """All users, newest registration first, without password digests."""
        stmt = (
            select(User)
            .options(defer(User.password_hash, raiseload=True))
            .order_by(User.registration_date.desc(), User.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_login_history(self, user_id: int, limit: int = 10) -> List[LoginAttempt]:
        """The user's login attempts, newest first."""
        stmt = (
            select(LoginAttempt)
            .where(LoginAttempt.user_id == user_id)
            .order_by(LoginAttempt.login_time.desc(), LoginAttempt.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
