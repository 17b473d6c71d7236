# backend/models/users.py
from sqlalchemy import Column, Integer, String
from database import Base

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
