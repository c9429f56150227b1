"""
presenter/orm/user.py
Instructor account. Owns grading sessions and rubric templates.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from presenter.orm.base import Base, isoformat


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
