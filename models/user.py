from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String

from models.base_model import ActiveFlagMixin, Base, BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Provider(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"


class User(ActiveFlagMixin, BaseModel, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=True)
    google_id = Column(String(64), nullable=True, unique=True, index=True)
    avatar = Column(String(500), nullable=True)
    role = Column(String(10), nullable=False, default=UserRole.USER.value)
    provider = Column(String(10), nullable=False, default=Provider.LOCAL.value)
    last_login = Column(DateTime(timezone=True), nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
