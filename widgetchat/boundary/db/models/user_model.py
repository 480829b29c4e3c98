"""
User ORM model.

Only the fields the auth capability needs: identity, role and active flag.
Password and profile management live in the external user service.

Dependencies: sqlalchemy, widgetchat.boundary.db.base
System role: Account lookup for bearer-token verification
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from widgetchat.boundary.db.base import Base, IDMixin, TimestampMixin


class UserModel(Base, IDMixin, TimestampMixin):
    """
    Operator or end-user account.

    Attributes:
        id: String primary key
        email: Unique login email
        full_name: Display name
        role: "admin" or "user"
        is_active: Disabled accounts authenticate as anonymous
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
