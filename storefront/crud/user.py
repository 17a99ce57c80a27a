# storefront/crud/user.py
import logging

from sqlalchemy.orm import Session

from storefront.models.user import User
from storefront.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.lower()).first()


def ensure_user(db: Session, identity: CurrentUser) -> User:
    """
    Создает запись пользователя при первом обращении или обновляет email/имя
    из токена. Нужна перед любой записью, ссылающейся на users.id.
    """
    email = identity.email.lower() if identity.email else None
    user = get_user(db, identity.id)

    if user is None:
        user = User(id=identity.id, email=email, name=identity.name)
        db.add(user)
        logger.info(f"Created local user record for {identity.id}")
    else:
        if email and user.email != email:
            user.email = email
        if identity.name and user.name != identity.name:
            user.name = identity.name

    db.commit()
    db.refresh(user)
    return user
