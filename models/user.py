from models.base_model import Base, BaseModel
from sqlalchemy import Boolean, Column, String, CheckConstraint
from sqlalchemy.orm import relationship

from utils.security import hash_password, verify_password


class User(BaseModel, Base):
    __tablename__ = "users"
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    # Stored as given (trimmed); lookups are case-sensitive
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default="customer")
    is_active = Column(Boolean, nullable=False, default=True)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'customer')", name="ck_users_role"),
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @password.setter
    def password(self, value: str):
        self.password_hash = hash_password(value)

    def verify_password(self, candidate: str) -> bool:
        return verify_password(candidate, self.password_hash)

    @classmethod
    def find_active_by_email(cls, session, email):
        return (
            session.query(cls)
            .filter(cls.email == email, cls.is_active.is_(True))
            .first()
        )

    @classmethod
    def find_active_by_id(cls, session, user_id):
        return (
            session.query(cls)
            .filter(cls.id == user_id, cls.is_active.is_(True))
            .first()
        )

    @classmethod
    def email_taken(cls, session, email, exclude_id=None) -> bool:
        query = session.query(cls.id).filter(cls.email == email)
        if exclude_id:
            query = query.filter(cls.id != exclude_id)
        return query.first() is not None
