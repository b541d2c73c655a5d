from sqlalchemy import Column, Integer, String

from .base import Base, TimestampMixin

class User(Base, TimestampMixin):
    """User record created through the create endpoint"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
