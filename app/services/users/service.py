from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models.user import User


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).one_or_none()

    def get_or_404(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).one_or_none()

    def create_user(self, username: str, email: str | None = None, email_verified: bool = False) -> User:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required")
        user = User(username=username, email=email, email_verified=email_verified, currency_balance=0)
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Username or email is already taken") from None
        return user
