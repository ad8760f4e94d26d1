import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.orm import Session

from farm_manager.config import settings
from farm_manager.exceptions import ValidationError
from farm_manager.models.user import User, UserRole

logger = logging.getLogger(__name__)

ADMIN_ROLES = {UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def create_access_token(user_id: str, username: str) -> str:
    payload = {
        "sub": user_id,
        "username": username,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError):
        return None


def authenticate(db: Session, username: str, password: str) -> User | None:
    user = db.query(User).filter(User.username == username, User.active == True).first()  # noqa: E712
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def create_user(
    db: Session,
    username: str,
    password: str,
    name: str = "",
    email: str = "",
    role: str = UserRole.EMPLOYEE.value,
) -> User:
    if role not in {r.value for r in UserRole}:
        raise ValidationError(f"Unknown role '{role}'")
    existing = db.query(User).filter(User.username == username).first()
    if existing:
        raise ValidationError(f"Username '{username}' already exists")
    user = User(
        username=username,
        name=name or username,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s with role %s", username, role)
    return user


def is_admin(user: User) -> bool:
    return user.role in ADMIN_ROLES


def ensure_default_admin(db: Session) -> None:
    """Create the configured super admin if no users exist."""
    count = db.query(User).count()
    if count == 0:
        create_user(
            db,
            username=settings.DEFAULT_ADMIN_USERNAME,
            password=settings.DEFAULT_ADMIN_PASSWORD,
            name="Admin",
            role=UserRole.SUPER_ADMIN.value,
        )
