"""
User accounts keyed by the OAuth open_id
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from tai_test.config import settings
from tai_test.models import User
from tai_test.services.results_service import utcnow

logger = logging.getLogger(__name__)


class UserService:
    """Upsert and lookup of users"""

    def get_user_by_open_id(self, db: Session, open_id: str) -> Optional[User]:
        return db.query(User).filter(User.open_id == open_id).first()

    def upsert_user(
        self,
        db: Session,
        open_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        login_method: Optional[str] = None,
        role: Optional[str] = None
    ) -> User:
        """
        Create the user on first sight, otherwise refresh the given fields

        The configured owner open_id is always stored as admin.
        """
        if not open_id:
            raise ValueError("User open_id is required for upsert")

        user = self.get_user_by_open_id(db, open_id)
        if user is None:
            user = User(open_id=open_id)
            db.add(user)
            logger.info(f"Creating user {open_id}")

        for field, value in (("name", name), ("email", email), ("login_method", login_method)):
            if value is not None:
                setattr(user, field, value)

        if role is not None:
            user.role = role
        elif settings.OWNER_OPEN_ID and open_id == settings.OWNER_OPEN_ID:
            user.role = "admin"
        elif user.role is None:
            user.role = "user"

        user.last_signed_in = utcnow()
        db.commit()
        db.refresh(user)
        return user


# Global instance
user_service = UserService()
