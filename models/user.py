from enum import Enum

from sqlalchemy import Column, String
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    # Stored exactly as registered; lookups are case-sensitive
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SAEnum(Role, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.USER,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User {self.email} role={self.role.value if self.role else None}>"
