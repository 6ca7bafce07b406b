"""
图书服务
"个性化"与"热门"都是简单的排序查询
"""
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Book, Category, User

# 列表接口的默认条数
LIST_LIMIT = 20


def parse_tags(raw: Optional[str]) -> List[str]:
    """逗号分隔的标签字符串 -> 去空白、去空项的列表"""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def serialize_book(book: Book) -> Dict:
    """图书 -> 接口字典（带作者用户名）"""
    author = book.author
    return {
        "id": book.id,
        "title": book.title,
        "description": book.description,
        "author_id": book.author_id,
        "author": author.username if author else None,
        "author_avatar": author.avatar_url if author else None,
        "category_id": book.category_id,
        "cover_url": book.cover_url,
        "file_url": book.file_url,
        "categories": book.categories or [],
        "tags": book.tags or [],
        "avg_rating": book.avg_rating or 0.0,
        "total_pages": book.total_pages or 0,
        "status": book.status,
        "created_at": book.created_at.isoformat() if book.created_at else None,
    }


class BookService:
    """图书服务"""

    @staticmethod
    def list_personalized(
        db: Session,
        category: Optional[str] = None,
        limit: int = LIST_LIMIT
    ) -> List[Book]:
        """
        个性化推荐（最新上架在前）

        Args:
            db: 数据库会话
            category: 分类名过滤（可选）
            limit: 条数

        Returns:
            List[Book]: 已审核通过的图书
        """
        query = db.query(Book).filter(Book.status == "approved")
        if category:
            query = query.join(Category, Book.category_id == Category.id).filter(Category.name == category)
        return query.order_by(Book.created_at.desc()).limit(limit).all()

    @staticmethod
    def list_trending(db: Session, limit: int = LIST_LIMIT) -> List[Book]:
        """热门图书（平均评分高的在前）"""
        return db.query(Book).filter(
            Book.status == "approved"
        ).order_by(Book.avg_rating.desc(), Book.created_at.desc()).limit(limit).all()

    @staticmethod
    def list_by_status(db: Session, status: str = "pending") -> List[Book]:
        """按审核状态列出图书（管理后台）"""
        return db.query(Book).filter(Book.status == status).order_by(Book.created_at.desc()).all()

    @staticmethod
    def get_book(db: Session, book_id: str) -> Optional[Book]:
        return db.query(Book).filter(Book.id == book_id).first()

    @staticmethod
    def is_visible(book: Book, viewer_id: Optional[str] = None, viewer_is_admin: bool = False) -> bool:
        """已审核的图书所有人可见；待审和被拒的只对作者本人与管理员可见"""
        if book.status == "approved" or viewer_is_admin:
            return True
        return viewer_id is not None and book.author_id == viewer_id

    @staticmethod
    def get_visible_book(
        db: Session,
        book_id: str,
        viewer_id: Optional[str] = None,
        viewer_is_admin: bool = False
    ) -> Optional[Book]:
        """按可见性取图书，看不到的与不存在的一样返回 None"""
        book = BookService.get_book(db, book_id)
        if book is None or not BookService.is_visible(book, viewer_id, viewer_is_admin):
            return None
        return book

    @staticmethod
    def upload_book(
        db: Session,
        author: User,
        title: str,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        tags: Optional[str] = None,
        total_pages: int = 0,
        file_url: Optional[str] = None,
        cover_url: Optional[str] = None
    ) -> Book:
        """
        上传图书，状态为 pending 等待管理员审核

        Args:
            db: 数据库会话
            author: 上传者（author 或 admin）
            title: 书名
            description: 简介
            category_id: 分类 ID（可选）
            tags: 逗号分隔的标签
            total_pages: 总页数（>= 0）
            file_url: 图书文件地址（文件存储由外部服务负责）
            cover_url: 封面地址

        Returns:
            Book: 新建的图书

        Raises:
            PermissionError: 上传者不是作者或管理员
            ValueError: 书名为空、页数为负或分类不存在
        """
        if author.role not in ("author", "admin"):
            raise PermissionError("只有作者或管理员可以上传图书")
        if not title or not title.strip():
            raise ValueError("书名不能为空")
        if total_pages < 0:
            raise ValueError("总页数不能为负数")

        categories: List[str] = []
        if category_id:
            category = db.query(Category).filter(Category.id == category_id).first()
            if not category:
                raise ValueError(f"分类 {category_id} 不存在")
            categories = [category.name]

        book = Book(
            id=str(uuid.uuid4()),
            title=title.strip(),
            description=description or None,
            author_id=author.id,
            category_id=category_id or None,
            categories=categories,
            tags=parse_tags(tags),
            total_pages=total_pages,
            file_url=file_url or None,
            cover_url=cover_url or None,
            status="pending",
            created_at=datetime.utcnow()
        )
        db.add(book)
        db.commit()
        db.refresh(book)
        return book

    @staticmethod
    def set_status(db: Session, book_id: str, status: str) -> Book:
        """
        审核图书（approved / rejected）

        Raises:
            ValueError: 图书不存在或状态不合法
        """
        if status not in ("approved", "rejected"):
            raise ValueError(f"不支持的审核状态: {status}")

        book = BookService.get_book(db, book_id)
        if not book:
            raise ValueError(f"图书 {book_id} 不存在")

        book.status = status
        db.commit()
        db.refresh(book)
        return book
