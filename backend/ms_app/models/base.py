from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class TimestampMixin:
    """Creation timestamp mixin"""
    created_at = Column(DateTime, server_default=func.now(), nullable=True)
