from enum import Enum

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, raw) -> "Role":
        """Map a stored or claimed role string onto the enum; ValueError if unknown."""
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).strip().lower())


class User(BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SAEnum(Role, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.ADMIN,
    )

    # refresh_tokens.user_id is ON DELETE CASCADE; let the DB do it
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
