from sqlalchemy.orm import Session
from app.data.models.user import UserModel
from app.domain.exceptions import ConflictError, NotFoundError
from app.repos.user_repo import UserRepo
from app.domain.schemas import UserCreate, UserRead
from app.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        if payload.email and self.repo.get_user_by_email(payload.email):
            raise ConflictError(f"Email {payload.email} is already registered")

        created = self.repo.create_user(UserModel(id=payload.id, name=payload.name, email=payload.email))
        logger.info(f"Created user {created.id}")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")
        return UserRead.model_validate(user)
