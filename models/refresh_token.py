"""
RefreshToken model: one row per live session credential.
Fields:
- id (String(36)) - surrogate key
- user_id (String(64)) - FK to users.id
- token_hash - SHA-256 hex digest of the opaque token; the raw value only
  ever lives in the client's cookie
- expires_at (naive UTC), created_at
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id}>"
