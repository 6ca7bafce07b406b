"""
Pytest 配置和通用 Fixtures

提供手动推进的定时器、内存数据网关和内存 SQLite 数据库
"""
import pytest
import sys
import os
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.models import Base, Book, BackgroundMusic, User  # noqa: E402
from app.reader import BookmarkEntry, BookRef, ReaderConfig, ReaderGateway, Scheduler, TimerHandle, Track  # noqa: E402


# ==================== 手动时钟调度器 ====================

class ManualTimer(TimerHandle):
    """手动时钟上的定时器"""

    def __init__(self, when: float, seq: int, callback: Callable[[], None]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    手动推进时间的调度器

    advance(seconds) 按到期顺序执行期间到期的所有回调，
    回调里新挂的定时器只要在目标时间内到期也会被执行
    """

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._timers: List[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        self._seq += 1
        timer = ManualTimer(self.now + delay, self._seq, callback)
        self._timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target
        self._timers = [t for t in self._timers if not t.cancelled]

    @property
    def pending(self) -> int:
        return len([t for t in self._timers if not t.cancelled])


@pytest.fixture
def scheduler():
    """创建手动时钟调度器"""
    return ManualScheduler()


# ==================== 内存数据网关 ====================

class RecordingGateway(ReaderGateway):
    """
    内存数据网关，记录每一次进度写入

    fail_writes=True 时写进度抛异常，模拟网络 / 存储故障
    """

    def __init__(self, tracks: Optional[List[Track]] = None):
        self.progress_writes: List[dict] = []
        self.rows: dict = {}
        self.bookmarks: List[BookmarkEntry] = []
        self.tracks = tracks or []
        self.fail_writes = False

    def upsert_progress(self, user_id, book_id, current_page, progress_percent, elapsed_minutes):
        if self.fail_writes:
            raise ConnectionError("gateway unavailable")
        write = {
            "user_id": user_id,
            "book_id": book_id,
            "current_page": current_page,
            "progress": progress_percent,
            "elapsed_minutes": elapsed_minutes,
        }
        self.progress_writes.append(write)
        self.rows[(user_id, book_id)] = write

    def insert_bookmark(self, user_id, book_id, page_number, note=None, highlight_text=None, highlight_color=None):
        entry = BookmarkEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            book_id=book_id,
            page_number=page_number,
            note=note,
            highlight_text=highlight_text,
            highlight_color=highlight_color,
            created_at=datetime.utcnow(),
        )
        self.bookmarks.append(entry)
        return entry

    def fetch_bookmarks(self, user_id, book_id):
        return sorted(
            [b for b in self.bookmarks if b.user_id == user_id and b.book_id == book_id],
            key=lambda b: b.page_number,
        )

    def fetch_active_music(self):
        return sorted(self.tracks, key=lambda t: t.title)


@pytest.fixture
def gateway():
    """创建内存数据网关"""
    return RecordingGateway(tracks=[
        Track(id="t-rain", title="Rain on Glass", file_url="/music/rain.mp3", artist="Ambient Loops"),
        Track(id="t-quiet", title="Quiet Library", file_url="/music/quiet.mp3", genre="Lo-fi"),
    ])


@pytest.fixture
def reader_config():
    return ReaderConfig(persist_delay=2.0, tick_interval=60.0)


@pytest.fixture
def book_ref():
    return BookRef(id="book-100", title="The Digital Renaissance", total_pages=100)


# ==================== 内存数据库 ====================

@pytest.fixture
def session_factory():
    """内存 SQLite，所有连接共享同一个库（请求线程与定时器线程都能看到）"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    """数据库会话"""
    session = session_factory()
    yield session
    session.close()


def make_user(db, username: str, role: str = "user") -> User:
    user = User(
        id=str(uuid.uuid4()),
        username=username,
        email=f"{username}@example.com",
        role=role,
        preferred_categories=[],
    )
    db.add(user)
    db.commit()
    return user


def make_book(db, author: User, title: str = "Echoes of Tomorrow", total_pages: int = 100,
              status: str = "approved", **fields) -> Book:
    book = Book(
        id=str(uuid.uuid4()),
        title=title,
        author_id=author.id,
        total_pages=total_pages,
        status=status,
        categories=fields.pop("categories", []),
        tags=fields.pop("tags", []),
        **fields,
    )
    db.add(book)
    db.commit()
    return book


def make_track(db, title: str, is_active: bool = True) -> BackgroundMusic:
    music = BackgroundMusic(
        id=str(uuid.uuid4()),
        title=title,
        file_url=f"/music/{title}.mp3",
        is_active=is_active,
    )
    db.add(music)
    db.commit()
    return music
