import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.config import Settings
from app.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError
from app.core.security import (
    Identity,
    burn_password_check,
    create_access_token,
    hash_password,
    verify_password,
)
from app.models.user import User
from app.schemas.user import LoginResponse, UserCreate, UserDeleted, UserDetail, UserRead, UserUpdate

logger = logging.getLogger(__name__)

# same body for "no such account" and "wrong password"
INVALID_CREDENTIALS = "Invalid credentials."


class UserService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def _get_or_404(self, user_id: str) -> User:
        user = self.db.get(User, str(user_id))
        if not user:
            raise NotFoundError("User not found.")
        return user

    def _ensure_self(self, user: User, identity: Identity) -> None:
        if not identity.is_user(user.id):
            raise AuthorizationError("You can only manage your own account.")

    def _email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        query = self.db.query(User.id).filter(User.email == email)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            # unique email raced past the pre-check
            self.db.rollback()
            raise ConflictError("Email is already registered.")

    def create(self, user_in: UserCreate) -> UserRead:
        if self._email_taken(user_in.email):
            raise ConflictError("Email is already registered.")

        data = user_in.model_dump(exclude={"password"})
        user = User(**data, password_hash=hash_password(user_in.password, self.settings))
        self.db.add(user)
        self._commit()
        self.db.refresh(user)

        logger.info("User %s registered", user.id)
        return UserRead.model_validate(user)

    def get(self, user_id) -> UserDetail:
        user = (
            self.db.query(User)
            .options(selectinload(User.products))
            .filter(User.id == str(user_id))
            .first()
        )
        if not user:
            raise NotFoundError("User not found.")
        return UserDetail.model_validate(user)

    def list(self) -> List[UserRead]:
        # no pagination
        users = self.db.query(User).order_by(User.created_at.asc()).all()
        return [UserRead.model_validate(u) for u in users]

    def update(self, user_id, user_in: UserUpdate, identity: Identity) -> UserRead:
        user = self._get_or_404(user_id)
        self._ensure_self(user, identity)

        # exclude_unset=True: Do not touch fields that were not sent
        data = user_in.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in data and self._email_taken(data["email"], exclude_id=user.id):
            raise ConflictError("Email is already registered.")

        password = data.pop("password", None)
        if password is not None:
            user.password_hash = hash_password(password, self.settings)

        for field, value in data.items():
            setattr(user, field, value)

        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return UserRead.model_validate(user)

    def delete(self, user_id, identity: Identity) -> UserDeleted:
        user = self._get_or_404(user_id)
        self._ensure_self(user, identity)

        deleted = UserRead.model_validate(user)
        self.db.delete(user)
        self.db.commit()

        logger.info("User %s deleted", deleted.id)
        return UserDeleted(message="User deleted successfully.", user=deleted)

    def authenticate(self, email: str, password: str) -> LoginResponse:
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            burn_password_check(password, self.settings)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        return LoginResponse(
            message="Login successful.",
            user=UserRead.model_validate(user),
            access_token=create_access_token(user.id, settings=self.settings),
        )
