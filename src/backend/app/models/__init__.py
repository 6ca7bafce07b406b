"""
Models package
Export all database models
"""

from .base import Base
from .user import User, USER_ROLES
from .category import Category
from .book import Book, BOOK_STATUSES
from .user_book import UserBook
from .bookmark import Bookmark
from .background_music import BackgroundMusic
from .rating import Rating

__all__ = [
    "Base",
    "User",
    "USER_ROLES",
    "Category",
    "Book",
    "BOOK_STATUSES",
    "UserBook",
    "Bookmark",
    "BackgroundMusic",
    "Rating",
]


def init_db():
    """初始化数据库"""
    from ..core.database import engine

    # 创建所有表
    Base.metadata.create_all(bind=engine)
    print("✅ Database tables created successfully")


def drop_all():
    """删除所有表（仅开发测试用）"""
    from ..core.database import engine

    # 删除所有表
    Base.metadata.drop_all(bind=engine)
    print("⚠️  All tables dropped")
