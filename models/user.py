from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel


class User(BaseModel, Base):
    __tablename__ = "users"

    # USR_<32 hex>, assigned by the credential store
    id = Column(String(64), primary_key=True, nullable=False)
    name = Column(String(255), nullable=False)
    # Stored normalised (stripped, lower-cased); see services.credential_store
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

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
        return f"<User id={self.id}>"
