# backend/models/users.py
from sqlalchemy import Column, Integer, String, UniqueConstraint, CheckConstraint
from database import Base

APP_ROLES = ("admin", "moderator", "user")

# Grants an application role to a user of the external auth provider
class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), index=True, nullable=False)
    role = Column(String(16), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
        CheckConstraint("role IN ('admin', 'moderator', 'user')", name="ck_user_role"),
    )
