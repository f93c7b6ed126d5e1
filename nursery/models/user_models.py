from sqlalchemy import Column, Integer, String, Boolean, DateTime
from nursery.core.db import Base, utcnow


class UserRole:
    ADMIN = "admin"
    MERCHANT = "merchant"
    CUSTOMER = "customer"

    ALL = {ADMIN, MERCHANT, CUSTOMER}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER)
    is_active = Column(Boolean, default=True)
    token_version = Column(Integer, nullable=False, default=0)

    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    @property
    def username(self) -> str:
        # activity log and role checks read `username`
        return self.email

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
