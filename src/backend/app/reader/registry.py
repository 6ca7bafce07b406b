"""
在线阅读会话登记表

每个 (用户, 图书) 至多一个在线会话；重复打开返回已有会话。
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from .config import ReaderConfig, get_reader_config
from .gateway import ReaderGateway
from .records import BookRef
from .scheduler import Scheduler, ThreadingScheduler
from .session import ReadingSession

logger = logging.getLogger(__name__)

SessionKey = Tuple[Optional[str], str]


class SessionRegistry:
    """在线阅读会话登记表"""

    def __init__(
        self,
        gateway: ReaderGateway,
        scheduler: Optional[Scheduler] = None,
        config: Optional[ReaderConfig] = None,
    ):
        self.gateway = gateway
        self.scheduler = scheduler or ThreadingScheduler()
        self.config = config or get_reader_config()
        self._sessions: Dict[SessionKey, ReadingSession] = {}
        self._lock = threading.Lock()

    def open(
        self,
        book: BookRef,
        initial_progress: float,
        user_id: Optional[str],
        elapsed_minutes: int = 0,
    ) -> ReadingSession:
        """打开会话；该 (用户, 图书) 已有在线会话时直接返回"""
        key = (user_id, book.id)
        with self._lock:
            existing = self._sessions.get(key)
            if existing is not None and not existing.closed:
                return existing

            session = ReadingSession.open(
                book,
                initial_progress,
                user_id=user_id,
                gateway=self.gateway,
                scheduler=self.scheduler,
                config=self.config,
                elapsed_minutes=elapsed_minutes,
                on_close=self._forget,
            )
            self._sessions[key] = session
            return session

    def get(self, user_id: Optional[str], book_id: str) -> Optional[ReadingSession]:
        with self._lock:
            session = self._sessions.get((user_id, book_id))
        if session is None or session.closed:
            return None
        return session

    def close(self, user_id: Optional[str], book_id: str) -> bool:
        """关闭并移除会话，返回是否存在该会话"""
        with self._lock:
            session = self._sessions.pop((user_id, book_id), None)
        if session is None:
            return False
        session.close()
        return True

    def close_user(self, user_id: str) -> int:
        """关闭某个用户的全部在线会话（如账号被封禁），返回关闭数量"""
        with self._lock:
            keys = [key for key in self._sessions if key[0] == user_id]
            sessions = [self._sessions.pop(key) for key in keys]
        for session in sessions:
            session.close()
        if sessions:
            logger.info(f"已关闭用户 {user_id} 的 {len(sessions)} 个在线阅读会话")
        return len(sessions)

    def close_all(self) -> int:
        """关闭全部在线会话（应用退出时调用）"""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
        if sessions:
            logger.info(f"已关闭 {len(sessions)} 个在线阅读会话")
        return len(sessions)

    def _forget(self, session: ReadingSession) -> None:
        # 会话自行关闭（空闲超时）后从登记表移除；同一键上已换成新会话时不动
        key = (session.user_id, session.book.id)
        with self._lock:
            if self._sessions.get(key) is session:
                del self._sessions[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# 全局登记表实例
_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    """获取或创建全局登记表（数据库网关 + 线程定时器）"""
    global _registry

    if _registry is None:
        from app.services.reader_gateway import DatabaseReaderGateway

        _registry = SessionRegistry(DatabaseReaderGateway())
    return _registry


def reset_session_registry() -> None:
    """关闭所有会话并丢弃全局实例"""
    global _registry

    if _registry is not None:
        _registry.close_all()
    _registry = None
