"""
User Entity

Identity checked by the credential verifier.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.clock import utcnow
from .enums import UserStatus


class User(SQLModel, table=True):
    """
    User entity - an identity that can hold sessions across clients.

    Business Rules:
    - Username must be unique
    - Password stored as bcrypt hash (cost factor 12)
    - totp_secret set means a second factor is required unless the
      device presents a trusted-device token
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    status: UserStatus = Field(default=UserStatus.active)

    # Base32 TOTP secret; None disables the second factor
    totp_secret: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
