"""
管理端 API 路由

提供分类管理、背景音乐管理、图书审核、用户封禁和角色分配

安全说明：
- 所有接口依赖 require_admin，非管理员统一返回 403 "Access denied"
"""

from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.identity import Identity, require_admin
from app.reader import SessionRegistry, get_session_registry
from app.services import BookService, CategoryService, MusicService, UserService
from app.services.book_service import serialize_book

router = APIRouter(prefix="/admin", tags=["Admin"])

# ==================== 请求/响应模型 ====================

class CategoryCreate(BaseModel):
    """新建分类"""
    name: str
    description: Optional[str] = None
    icon: str = "BookOpen"
    color: str = "#6366f1"
    is_active: bool = True


class CategoryUpdate(BaseModel):
    """更新分类（未提供的字段不修改）"""
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None


class MusicCreate(BaseModel):
    """新增背景音乐（音频已上传到外部存储）"""
    title: str
    file_url: str
    artist: Optional[str] = None
    genre: Optional[str] = None
    duration: int = Field(0, ge=0)
    is_active: bool = True


class MusicUpdate(BaseModel):
    """更新背景音乐（未提供的字段不修改）"""
    title: Optional[str] = None
    file_url: Optional[str] = None
    artist: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class RoleUpdate(BaseModel):
    """修改用户角色"""
    role: Literal["user", "author", "admin"]


# ==================== 分类管理 ====================

@router.get("/categories")
def list_categories(_: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """全部分类（含图书数量）"""
    return CategoryService.list_categories(db)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        category = CategoryService.create_category(db, **payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CategoryService.to_dict(category)


@router.put("/categories/{category_id}")
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        category = CategoryService.update_category(db, category_id, **payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CategoryService.to_dict(category)


@router.post("/categories/{category_id}/toggle")
def toggle_category(
    category_id: str,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """启用 / 停用分类"""
    try:
        category = CategoryService.toggle_active(db, category_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CategoryService.to_dict(category)


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: str,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """删除分类（仍有图书时拒绝）"""
    try:
        CategoryService.delete_category(db, category_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"deleted": True}


# ==================== 背景音乐管理 ====================

@router.get("/music")
def list_music(_: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return [MusicService.to_dict(m) for m in MusicService.list_music(db)]


@router.post("/music", status_code=status.HTTP_201_CREATED)
def create_music(
    payload: MusicCreate,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        music = MusicService.create_music(db, **payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MusicService.to_dict(music)


@router.put("/music/{music_id}")
def update_music(
    music_id: str,
    payload: MusicUpdate,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        music = MusicService.update_music(db, music_id, **payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MusicService.to_dict(music)


@router.post("/music/{music_id}/toggle")
def toggle_music(
    music_id: str,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """启用 / 停用曲目"""
    try:
        music = MusicService.toggle_active(db, music_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MusicService.to_dict(music)


@router.delete("/music/{music_id}")
def delete_music(
    music_id: str,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        MusicService.delete_music(db, music_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": True}


# ==================== 图书审核 ====================

@router.get("/books")
def list_books_for_review(
    status_filter: str = "pending",
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """按审核状态列出图书，默认待审核"""
    return [serialize_book(b) for b in BookService.list_by_status(db, status_filter)]


@router.post("/books/{book_id}/{action}")
def moderate_book(
    book_id: str,
    action: str,
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """审核图书：action 为 approve 或 reject"""
    statuses = {"approve": "approved", "reject": "rejected"}
    if action not in statuses:
        raise HTTPException(status_code=400, detail=f"不支持的操作: {action}")
    try:
        book = BookService.set_status(db, book_id, statuses[action])
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return serialize_book(book)


# ==================== 用户管理 ====================

@router.get("/users")
def list_users(_: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return [
        {
            "id": u.id,
            "username": u.username,
            "email": u.email,
            "role": u.role,
            "is_suspended": u.is_suspended,
            "created_at": u.created_at.isoformat() if u.created_at else None,
        }
        for u in UserService.list_users(db)
    ]


@router.post("/users/{target_user_id}/{action}")
def moderate_user(
    target_user_id: str,
    action: str,
    identity: Identity = Depends(require_admin),
    registry: SessionRegistry = Depends(get_session_registry),
    db: Session = Depends(get_db)
):
    """封禁 / 解封用户：action 为 suspend 或 activate，封禁时关闭其在线阅读会话"""
    if action not in ("suspend", "activate"):
        raise HTTPException(status_code=400, detail=f"不支持的操作: {action}")
    if target_user_id == identity.user_id:
        raise HTTPException(status_code=400, detail="不能修改自己的账号状态")
    try:
        user = UserService.set_suspended(db, target_user_id, action == "suspend")
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if user.is_suspended:
        registry.close_user(user.id)
    return {"id": user.id, "is_suspended": user.is_suspended}


@router.put("/users/{target_user_id}/role")
def update_user_role(
    target_user_id: str,
    payload: RoleUpdate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """分配角色（user / author / admin），不能修改自己的角色"""
    if target_user_id == identity.user_id:
        raise HTTPException(status_code=400, detail="不能修改自己的角色")
    try:
        user = UserService.set_role(db, target_user_id, payload.role)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"id": user.id, "role": user.role}
