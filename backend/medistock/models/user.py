from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from medistock.db.base import Base


class Role:
    ADMIN = "Admin"
    PHARMACIST = "Pharmacist"
    AUDITOR = "Auditor"

    ALL = (ADMIN, PHARMACIST, AUDITOR)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.PHARMACIST)  # Admin | Pharmacist | Auditor
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
