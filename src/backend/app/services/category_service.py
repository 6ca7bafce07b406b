"""
分类管理服务（管理后台）
"""
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Book, Category

DEFAULT_ICON = "BookOpen"
DEFAULT_COLOR = "#6366f1"


class CategoryService:
    """分类管理服务"""

    @staticmethod
    def list_categories(db: Session) -> List[Dict]:
        """
        列出全部分类及其图书数量（新建的在前）

        Returns:
            List[Dict]: 分类字典，含 book_count
        """
        counts = dict(
            db.query(Book.category_id, func.count(Book.id))
            .filter(Book.category_id.isnot(None))
            .group_by(Book.category_id)
            .all()
        )
        categories = db.query(Category).order_by(Category.created_at.desc()).all()
        return [
            {**CategoryService.to_dict(c), "book_count": int(counts.get(c.id, 0))}
            for c in categories
        ]

    @staticmethod
    def list_active(db: Session) -> List[Category]:
        """前台可见的分类，按名称排序"""
        return db.query(Category).filter(
            Category.is_active == True
        ).order_by(Category.name.asc()).all()

    @staticmethod
    def get_category(db: Session, category_id: str) -> Optional[Category]:
        return db.query(Category).filter(Category.id == category_id).first()

    @staticmethod
    def create_category(
        db: Session,
        name: str,
        description: Optional[str] = None,
        icon: str = DEFAULT_ICON,
        color: str = DEFAULT_COLOR,
        is_active: bool = True
    ) -> Category:
        """
        新建分类

        Raises:
            ValueError: 名称为空或重名
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("分类名称不能为空")
        if db.query(Category).filter(Category.name == name).first():
            raise ValueError(f"分类 {name} 已存在")

        category = Category(
            id=str(uuid.uuid4()),
            name=name,
            description=description or None,
            icon=icon or DEFAULT_ICON,
            color=color or DEFAULT_COLOR,
            is_active=is_active,
            created_at=datetime.utcnow()
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def update_category(db: Session, category_id: str, **fields) -> Category:
        """
        更新分类，值为 None 的字段保持不变

        Raises:
            ValueError: 分类不存在或改名后重名
        """
        category = CategoryService.get_category(db, category_id)
        if not category:
            raise ValueError(f"分类 {category_id} 不存在")

        name = fields.get("name")
        if name is not None:
            name = name.strip()
            if not name:
                raise ValueError("分类名称不能为空")
            duplicate = db.query(Category).filter(
                Category.name == name,
                Category.id != category_id
            ).first()
            if duplicate:
                raise ValueError(f"分类 {name} 已存在")
            fields["name"] = name

        for key in ("name", "description", "icon", "color", "is_active"):
            if fields.get(key) is not None:
                setattr(category, key, fields[key])

        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def toggle_active(db: Session, category_id: str) -> Category:
        category = CategoryService.get_category(db, category_id)
        if not category:
            raise ValueError(f"分类 {category_id} 不存在")

        category.is_active = not category.is_active
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, category_id: str) -> None:
        """
        删除分类；仍有图书引用时拒绝

        Raises:
            ValueError: 分类不存在或仍有关联图书
        """
        category = CategoryService.get_category(db, category_id)
        if not category:
            raise ValueError(f"分类 {category_id} 不存在")

        book_count = db.query(func.count(Book.id)).filter(
            Book.category_id == category_id
        ).scalar() or 0
        if book_count > 0:
            raise ValueError("该分类下还有图书，不能删除")

        db.delete(category)
        db.commit()

    @staticmethod
    def to_dict(category: Category) -> Dict:
        return {
            "id": category.id,
            "name": category.name,
            "description": category.description,
            "icon": category.icon,
            "color": category.color,
            "is_active": category.is_active,
            "created_at": category.created_at.isoformat() if category.created_at else None,
        }
