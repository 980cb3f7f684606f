"""SQLAlchemy ORM models."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    favorite_authors = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
