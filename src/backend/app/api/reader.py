"""
阅读器API

前端阅读器的每个交互（翻页、调节显示、书签、背景音乐）都对应一次调用，
状态保存在服务端的在线阅读会话中，进度由会话自行防抖写库。
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.identity import Identity, require_identity
from app.reader import HIGHLIGHT_COLORS, ReadingSession, SessionRegistry, get_session_registry
from app.services import ReaderService


router = APIRouter(prefix="/reader", tags=["阅读器"])


# 请求模型
class SessionOpen(BaseModel):
    """打开阅读会话请求"""
    book_id: str
    initial_progress: Optional[float] = Field(None, ge=0, le=100)  # 不传则从已保存的进度继续


class PageTurn(BaseModel):
    """翻页请求"""
    direction: Literal[1, -1]


class DisplayUpdate(BaseModel):
    """显示设置（超出范围的值会被截断到边界）"""
    zoom: Optional[int] = None
    font_size: Optional[int] = None
    dark_mode: Optional[bool] = None
    reset_zoom: bool = False


class BookmarkCreate(BaseModel):
    """书签请求，page_number 不传则为当前页"""
    page_number: Optional[int] = None
    note: Optional[str] = None
    highlight_text: Optional[str] = None
    color: Optional[str] = None


class AudioCommand(BaseModel):
    """背景音乐控制"""
    action: Literal["play", "pause", "volume", "mute"]
    track_id: Optional[str] = None
    volume: Optional[int] = None


def _live_session(registry: SessionRegistry, identity: Identity, book_id: str) -> ReadingSession:
    try:
        return ReaderService.get_session(registry, identity.user_id, book_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
def open_session(
    payload: SessionOpen,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry),
    db: Session = Depends(get_db)
):
    """
    打开阅读会话

    同一用户同一本书重复打开时返回已有会话
    """
    try:
        session = ReaderService.open_session(
            db, registry, identity.user_id, payload.book_id, payload.initial_progress,
            is_admin=identity.is_admin
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        **session.snapshot(),
        "bookmarks": [b.to_dict() for b in session.bookmarks()],
        "highlight_colors": HIGHLIGHT_COLORS,
    }


@router.get("/sessions/{book_id}")
def get_session(
    book_id: str,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """当前会话状态"""
    return _live_session(registry, identity, book_id).snapshot()


@router.post("/sessions/{book_id}/page")
def turn_page(
    book_id: str,
    payload: PageTurn,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """翻页；首页 / 末页处不动"""
    session = _live_session(registry, identity, book_id)
    session.turn_page(payload.direction)
    return session.snapshot()


@router.put("/sessions/{book_id}/display")
def update_display(
    book_id: str,
    payload: DisplayUpdate,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """缩放、字号、夜间模式（只改本地状态，不写库）"""
    session = _live_session(registry, identity, book_id)
    if payload.reset_zoom:
        session.reset_zoom()
    elif payload.zoom is not None:
        session.set_zoom(payload.zoom)
    if payload.font_size is not None:
        session.set_font_size(payload.font_size)
    if payload.dark_mode is not None:
        session.set_dark_mode(payload.dark_mode)
    return session.snapshot()


@router.post("/sessions/{book_id}/bookmarks", status_code=status.HTTP_201_CREATED)
def create_bookmark(
    book_id: str,
    payload: BookmarkCreate,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """添加书签 / 高亮"""
    session = _live_session(registry, identity, book_id)
    try:
        entry = session.create_bookmark(
            payload.page_number,
            note=payload.note,
            highlight_text=payload.highlight_text,
            color=payload.color,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return entry.to_dict()


@router.get("/sessions/{book_id}/bookmarks")
def list_bookmarks(
    book_id: str,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """书签列表（页码降序）"""
    session = _live_session(registry, identity, book_id)
    return [b.to_dict() for b in session.bookmarks()]


@router.get("/music")
def list_music(registry: SessionRegistry = Depends(get_session_registry)):
    """可选的背景音乐（仅启用的，按标题排序）"""
    return [t.to_dict() for t in ReaderService.list_music(registry)]


@router.post("/sessions/{book_id}/audio")
def control_audio(
    book_id: str,
    payload: AudioCommand,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    背景音乐控制

    - play: 播放 track_id 指定的曲目（播放中则切换曲目）
    - pause: 暂停
    - volume: 设置音量（0-100）
    - mute: 切换静音
    """
    session = _live_session(registry, identity, book_id)

    if payload.action == "play":
        if not payload.track_id:
            raise HTTPException(status_code=400, detail="播放需要 track_id")
        try:
            track = ReaderService.find_track(registry, payload.track_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))
        session.play_track(track)
    elif payload.action == "pause":
        session.pause()
    elif payload.action == "volume":
        if payload.volume is None:
            raise HTTPException(status_code=400, detail="需要 volume")
        session.set_volume(payload.volume)
    else:
        session.toggle_mute()

    return session.player.to_dict()


@router.delete("/sessions/{book_id}")
def close_session(
    book_id: str,
    identity: Identity = Depends(require_identity),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """关闭会话并立即保存进度"""
    if not ReaderService.close_session(registry, identity.user_id, book_id):
        raise HTTPException(status_code=404, detail=f"图书 {book_id} 没有打开的阅读会话")
    return {"closed": True}
