"""
RefreshToken model: one row per live login session.
Fields:
- id (primary key)
- user_id (String(36)) - FK to users.id
- token: the signed refresh JWT handed to the client

A refresh token is honoured only while its row exists; logout deletes the row.
"""
from sqlalchemy import Column, String, ForeignKey

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(1024), nullable=False, unique=True, index=True)

    def __repr__(self):
        return f"<RefreshToken user={self.user_id}>"
