"""Append-only audit models for credentials and logins."""
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class PasswordHistory(Base):
    """One row per password set on an account."""
    
    __tablename__ = "password_history"
    
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    
    def __repr__(self) -> str:
        return f"<PasswordHistory(user_id={self.user_id}, changed_at={self.changed_at})>"


class LoginAttempt(Base):
    """Login attempt, successful or not."""
    
    __tablename__ = "login_history"
    
    # Null when the identity did not match any account
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        index=True
    )
    login_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    user_agent: Mapped[Optional[str]] = mapped_column(Text)
    success: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    
    def __repr__(self) -> str:
        return f"<LoginAttempt(user_id={self.user_id}, success={self.success})>"
