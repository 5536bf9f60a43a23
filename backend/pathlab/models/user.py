from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime

from pathlab.db.base import Base

# editor: may create and change records; viewer: read only
USER_ROLES = ("editor", "viewer")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(100), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="viewer")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    @property
    def is_editor(self) -> bool:
        return self.role == "editor"

    @property
    def is_viewer(self) -> bool:
        return self.role == "viewer"
