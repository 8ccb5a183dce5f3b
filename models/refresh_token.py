"""
RefreshToken model: server-side record of every issued refresh token so
they can be revoked and rotated.
Fields:
- token_hash (unique) - SHA-256 of the signed token string
- user_id (String(36)) - FK to users.id
- revoked (bool) - terminal once set
- expires_at (naive UTC)
Rows are never deleted; revocation is the only mutation.
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, TokenRecordMixin
from utils.security import hash_token, utcnow


class RefreshToken(TokenRecordMixin, BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_revoked", "user_id", "revoked"),
    )

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} revoked={self.revoked}>"

    @classmethod
    def for_token(cls, token: str, user_id: str, expires_at):
        return cls(token_hash=hash_token(token), user_id=user_id, revoked=False, expires_at=expires_at)

    @classmethod
    def find_valid(cls, session, token: str, now=None):
        """Unrevoked, unexpired record for the exact token string, else None."""
        now = now or utcnow()
        return (
            cls.matching(session, token)
            .filter(cls.revoked.is_(False), cls.expires_at > now)
            .first()
        )

    @classmethod
    def revoke_if_active(cls, session, record_id: str) -> bool:
        """
        Conditional revoke; returns False when another transaction already
        revoked the row, so only one rotation of a token can succeed.
        """
        updated = (
            session.query(cls)
            .filter(cls.id == record_id, cls.revoked.is_(False))
            .update({cls.revoked: True}, synchronize_session="fetch")
        )
        return updated == 1

    @classmethod
    def revoke_by_token(cls, session, token: str, user_id=None) -> int:
        query = cls.matching(session, token).filter(cls.revoked.is_(False))
        if user_id is not None:
            query = query.filter(cls.user_id == user_id)
        return query.update({cls.revoked: True}, synchronize_session="fetch")

    @classmethod
    def revoke_all_for_user(cls, session, user_id: str) -> int:
        return (
            session.query(cls)
            .filter(cls.user_id == user_id, cls.revoked.is_(False))
            .update({cls.revoked: True}, synchronize_session="fetch")
        )
