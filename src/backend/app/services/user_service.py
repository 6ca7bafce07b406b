"""
用户管理模块
支持Dev模式（按用户名免注册快速体验）
"""
import uuid
import hashlib
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import User, UserBook, Rating, USER_ROLES


class UserService:
    """用户服务"""

    @staticmethod
    def _generate_user_id_from_username(username: str) -> str:
        """
        根据用户名生成确定性的用户ID

        使用SHA256哈希确保同一个用户名总是生成相同的ID
        """
        hash_bytes = hashlib.sha256(username.encode('utf-8')).digest()
        return str(uuid.UUID(bytes=hash_bytes[:16]))

    @staticmethod
    def get_or_create_user(
        db: Session,
        username: str,
        email: Optional[str] = None,
        role: str = "user"
    ) -> User:
        """
        获取或创建用户（Dev模式）

        Args:
            db: 数据库会话
            username: 用户名
            email: 邮箱（可选，默认生成本地邮箱）
            role: 角色，仅新建用户时生效

        Returns:
            User: 用户对象

        Raises:
            ValueError: 用户名为空或角色不合法
        """
        username = (username or "").strip()
        if not username:
            raise ValueError("用户名不能为空")
        if role not in USER_ROLES:
            raise ValueError(f"不支持的角色: {role}")

        user = db.query(User).filter(User.username == username).first()
        if user:
            return user

        user_id = UserService._generate_user_id_from_username(username)
        user = User(
            id=user_id,
            username=username,
            email=email or f"{username}@wordvale.local",
            role=role,
            preferred_categories=[],
            created_at=datetime.utcnow()
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[User]:
        """获取用户"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def list_users(db: Session) -> List[User]:
        """列出所有用户，新注册的在前"""
        return db.query(User).order_by(User.created_at.desc()).all()

    @staticmethod
    def set_suspended(db: Session, user_id: str, suspended: bool) -> User:
        """
        封禁 / 解封用户（管理员操作）

        Raises:
            ValueError: 用户不存在
        """
        user = UserService.get_user(db, user_id)
        if not user:
            raise ValueError(f"用户 {user_id} 不存在")

        user.is_suspended = suspended
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def set_role(db: Session, user_id: str, role: str) -> User:
        """
        修改用户角色（管理员操作）

        Raises:
            ValueError: 用户不存在或角色不合法
        """
        if role not in USER_ROLES:
            raise ValueError(f"不支持的角色: {role}")

        user = UserService.get_user(db, user_id)
        if not user:
            raise ValueError(f"用户 {user_id} 不存在")

        user.role = role
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_profile(
        db: Session,
        user_id: str,
        username: Optional[str] = None,
        full_name: Optional[str] = None,
        bio: Optional[str] = None,
        preferred_categories: Optional[List[str]] = None
    ) -> User:
        """
        更新个人资料，None 表示不修改该字段

        Raises:
            ValueError: 用户不存在或用户名已被占用
        """
        user = UserService.get_user(db, user_id)
        if not user:
            raise ValueError(f"用户 {user_id} 不存在")

        if username is not None:
            username = username.strip()
            if not username:
                raise ValueError("用户名不能为空")
            taken = db.query(User).filter(User.username == username, User.id != user_id).first()
            if taken:
                raise ValueError(f"用户名 {username} 已被占用")
            user.username = username
        if full_name is not None:
            user.full_name = full_name
        if bio is not None:
            user.bio = bio
        if preferred_categories is not None:
            user.preferred_categories = list(preferred_categories)

        user.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_user_stats(db: Session, user_id: str) -> dict:
        """
        获取用户阅读统计

        Returns:
            dict: total_books / books_read / average_rating / total_reading_time（分钟）
        """
        total_books = db.query(func.count(UserBook.id)).filter(
            UserBook.user_id == user_id
        ).scalar() or 0

        books_read = db.query(func.count(UserBook.id)).filter(
            UserBook.user_id == user_id,
            UserBook.finished_reading_at.isnot(None)
        ).scalar() or 0

        total_reading_time = db.query(func.sum(UserBook.reading_time)).filter(
            UserBook.user_id == user_id
        ).scalar() or 0

        average_rating = db.query(func.avg(Rating.rating)).filter(
            Rating.user_id == user_id
        ).scalar()

        return {
            "total_books": int(total_books),
            "books_read": int(books_read),
            "average_rating": round(float(average_rating), 2) if average_rating is not None else 0.0,
            "total_reading_time": int(total_reading_time),
        }
