from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def find_by_username_or_email(self, username: str, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(or_(UserModel.username == username, UserModel.email == email))
        ).scalars().first()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
