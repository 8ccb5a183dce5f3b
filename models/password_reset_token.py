from sqlalchemy import Column, String, Boolean, ForeignKey, Index

from models.base_model import BaseModel, Base, TokenRecordMixin
from utils.security import hash_token, utcnow


class PasswordResetToken(TokenRecordMixin, BaseModel, Base):
    """Single-use, time-boxed reset token; only the newest unused one counts."""
    __tablename__ = "password_reset_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    used = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_password_reset_tokens_user_used", "user_id", "used"),
    )

    @classmethod
    def for_token(cls, token: str, user_id: str, expires_at):
        return cls(token_hash=hash_token(token), user_id=user_id, used=False, expires_at=expires_at)

    @classmethod
    def invalidate_unused_for_user(cls, session, user_id: str) -> int:
        return (
            session.query(cls)
            .filter(cls.user_id == user_id, cls.used.is_(False))
            .update({cls.used: True}, synchronize_session="fetch")
        )

    @classmethod
    def find_valid(cls, session, token: str, now=None):
        now = now or utcnow()
        return (
            cls.matching(session, token)
            .filter(cls.used.is_(False), cls.expires_at > now)
            .first()
        )

    @classmethod
    def mark_used(cls, session, record_id: str) -> bool:
        updated = (
            session.query(cls)
            .filter(cls.id == record_id, cls.used.is_(False))
            .update({cls.used: True}, synchronize_session="fetch")
        )
        return updated == 1
