"""
User model - accounts backing the OAuth sign-in
"""
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, func
from tai_test.database import Base


class User(Base):
    """
    Users table - one row per OAuth identity (open_id)
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    open_id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(Text)
    email = Column(String(320))
    login_method = Column(String(64))
    role = Column(String(10), nullable=False, default="user")  # user | admin
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)
    last_signed_in = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, open_id={self.open_id}, role={self.role})>"
