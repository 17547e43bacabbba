"""
RefreshToken model: one row per live refresh secret.
Fields:
- token_hash: SHA-256 hex of the secret handed to the client (the secret itself is never stored)
- user_id: FK to users.id, ON DELETE CASCADE
- expires_at: naive UTC; rows past it are never matched
- user_agent, ip: where the token was issued
Rows are deleted when redeemed (rotation) or revoked (logout). On SQLite the table
uses AUTOINCREMENT, so a freed id is never reused by a later token.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    user_agent = Column(String(512), nullable=True)
    ip = Column(String(64), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} expires_at={self.expires_at}>"
