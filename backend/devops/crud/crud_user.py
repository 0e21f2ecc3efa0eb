"""CRUD operations for User model."""
from typing import List, Optional, Tuple
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from devops.crud.base import CRUDBase
from devops.models.user import User
from devops.schemas.user import UserCreate, UserUpdate
from devops.core.security import get_password_hash, verify_password


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    """CRUD operations for User."""

    def get_with_role(self, db: Session, *, id) -> Optional[User]:
        """Get user with its role eagerly loaded."""
        return (
            db.query(User)
            .options(joinedload(User.role))
            .filter(User.id == id)
            .first()
        )

    def get_by_username(self, db: Session, *, username: str) -> Optional[User]:
        """Get user by username."""
        return db.query(User).filter(User.username == username).first()

    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        """Get user by email."""
        return db.query(User).filter(User.email == email).first()

    def get_multi_filtered(
        self,
        db: Session,
        *,
        keyword: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """List users with optional keyword filter, returning (items, total)."""
        query = db.query(User)
        if keyword:
            like = f"%{keyword}%"
            query = query.filter(
                (User.username.like(like)) | (User.real_name.like(like)) | (User.email.like(like))
            )
        total = query.count()
        items = (
            query.options(joinedload(User.role))
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def create(self, db: Session, *, obj_in: UserCreate) -> User:
        """Create new user with hashed password."""
        db_obj = User(
            username=obj_in.username,
            password_hash=get_password_hash(obj_in.password),
            email=obj_in.email,
            phone=obj_in.phone,
            real_name=obj_in.real_name,
            role_id=obj_in.role_id,
            status=1,
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: User, obj_in: UserUpdate) -> User:
        """Update user, hashing the password when one is supplied."""
        update_data = obj_in.model_dump(exclude_unset=True)
        password = update_data.pop("password", None)
        if password:
            update_data["password_hash"] = get_password_hash(password)
        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def authenticate(self, db: Session, *, username: str, password: str) -> Optional[User]:
        """Authenticate user by username and password."""
        user = self.get_by_username(db, username=username)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def update_last_login(self, db: Session, *, user: User) -> User:
        """Update user's last login timestamp."""
        user.last_login = datetime.utcnow()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def is_active(self, user: User) -> bool:
        return user.status == 1


user = CRUDUser(User)
