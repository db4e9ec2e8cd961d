from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import AuthorizationError, NotFoundError, ValidationError
from storefront.domain.identity import Identity
from storefront.domain.schemas import UserCreate
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger
from storefront.utils.storage import storage_errors

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserModel:
        with storage_errors("create user"):
            existing = self.repo.find_by_username_or_email(payload.username, payload.email)
            if existing:
                raise ValidationError(
                    "Username or email already registered",
                    {"username": ["already registered"]} if existing.username == payload.username
                    else {"email": ["already registered"]},
                )
            try:
                user = self.repo.create_user(UserModel(**payload.model_dump(), is_admin=False))
            except IntegrityError as e:
                self.repo.db.rollback()
                raise ValidationError("Username or email already registered") from e

        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def get_user(self, identity: Identity, user_id: int) -> UserModel:
        if identity.user_id != user_id and not identity.is_admin:
            raise AuthorizationError("Cannot read another user's profile")

        with storage_errors("read user"):
            user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def lookup(self, user_id: int) -> UserModel | None:
        """Identity lookup for the auth header, no permission check."""
        with storage_errors("read user"):
            return self.repo.get_user(user_id)
