"""
业务服务测试：用户、图书、分类、评分、书架、阅读会话装配
"""
from datetime import datetime, timedelta

import pytest

from app.models import UserBook
from app.reader import SessionRegistry
from app.services import (
    BookService,
    CategoryService,
    DatabaseReaderGateway,
    LibraryService,
    MusicService,
    RatingService,
    ReaderService,
    UserService,
)
from app.services.book_service import parse_tags, serialize_book
from conftest import make_book, make_user


class TestUserService:

    def test_same_username_same_user(self, db):
        first = UserService.get_or_create_user(db, "alice")
        second = UserService.get_or_create_user(db, "alice", role="admin")

        assert first.id == second.id
        assert second.role == "user"
        assert first.email == "alice@wordvale.local"

    def test_invalid_role_rejected(self, db):
        with pytest.raises(ValueError):
            UserService.get_or_create_user(db, "mallory", role="superuser")

    def test_blank_username_rejected(self, db):
        with pytest.raises(ValueError):
            UserService.get_or_create_user(db, "   ")

    def test_update_profile(self, db):
        user = make_user(db, "alice")

        updated = UserService.update_profile(
            db, user.id, full_name="Alice Reader", preferred_categories=["Science"]
        )

        assert updated.full_name == "Alice Reader"
        assert updated.preferred_categories == ["Science"]
        assert updated.username == "alice"

    def test_update_profile_rejects_taken_username(self, db):
        make_user(db, "alice")
        bob = make_user(db, "bob")
        with pytest.raises(ValueError):
            UserService.update_profile(db, bob.id, username="alice")

    def test_suspend_and_activate(self, db):
        user = make_user(db, "alice")
        assert UserService.set_suspended(db, user.id, True).is_suspended is True
        assert UserService.set_suspended(db, user.id, False).is_suspended is False

    def test_set_role(self, db):
        user = make_user(db, "alice")
        assert UserService.set_role(db, user.id, "author").role == "author"

        with pytest.raises(ValueError):
            UserService.set_role(db, user.id, "superuser")
        with pytest.raises(ValueError):
            UserService.set_role(db, "missing", "author")

    def test_stats(self, db):
        reader = make_user(db, "reader")
        author = make_user(db, "writer", role="author")
        book_a = make_book(db, author, title="A")
        book_b = make_book(db, author, title="B")
        db.add_all([
            UserBook(id="ub-1", user_id=reader.id, book_id=book_a.id, reading_progress=100,
                     reading_time=45, finished_reading_at=datetime.utcnow()),
            UserBook(id="ub-2", user_id=reader.id, book_id=book_b.id, reading_progress=20,
                     reading_time=15),
        ])
        db.commit()
        RatingService.submit_rating(db, reader.id, book_a.id, 4)
        RatingService.submit_rating(db, reader.id, book_b.id, 5)

        stats = UserService.get_user_stats(db, reader.id)

        assert stats == {
            "total_books": 2,
            "books_read": 1,
            "average_rating": 4.5,
            "total_reading_time": 60,
        }

    def test_stats_for_new_user(self, db):
        user = make_user(db, "newbie")
        stats = UserService.get_user_stats(db, user.id)
        assert stats["total_books"] == 0
        assert stats["average_rating"] == 0.0


class TestBookService:

    def test_parse_tags(self):
        assert parse_tags(" ai, future ,,history ") == ["ai", "future", "history"]
        assert parse_tags(None) == []

    def test_reader_cannot_upload(self, db):
        reader = make_user(db, "reader")
        with pytest.raises(PermissionError):
            BookService.upload_book(db, reader, "My Book")

    def test_upload_is_pending(self, db):
        author = make_user(db, "writer", role="author")
        category = CategoryService.create_category(db, "Science")

        book = BookService.upload_book(
            db, author, "  Quantum Gardens ", category_id=category.id, tags="physics, botany", total_pages=240
        )

        assert book.status == "pending"
        assert book.title == "Quantum Gardens"
        assert book.categories == ["Science"]
        assert book.tags == ["physics", "botany"]
        assert book.total_pages == 240

    @pytest.mark.parametrize("title,pages,category_id", [
        ("", 10, None),
        ("Title", -1, None),
        ("Title", 10, "missing-category"),
    ])
    def test_upload_validation(self, db, title, pages, category_id):
        author = make_user(db, "writer", role="author")
        with pytest.raises(ValueError):
            BookService.upload_book(db, author, title, total_pages=pages, category_id=category_id)

    def test_personalized_lists_only_approved_newest_first(self, db):
        author = make_user(db, "writer", role="author")
        fiction = CategoryService.create_category(db, "Fiction")
        science = CategoryService.create_category(db, "Science")
        now = datetime.utcnow()
        make_book(db, author, title="Old", created_at=now - timedelta(days=2), category_id=fiction.id)
        make_book(db, author, title="New", created_at=now, category_id=science.id)
        make_book(db, author, title="Waiting", status="pending", created_at=now, category_id=science.id)

        titles = [b.title for b in BookService.list_personalized(db)]
        assert titles == ["New", "Old"]

        science_titles = [b.title for b in BookService.list_personalized(db, category="Science")]
        assert science_titles == ["New"]
        assert BookService.list_personalized(db, category="Poetry") == []

    def test_personalized_category_filter_respects_limit(self, db):
        author = make_user(db, "writer", role="author")
        science = CategoryService.create_category(db, "Science")
        other = CategoryService.create_category(db, "History")
        now = datetime.utcnow()
        for day in range(3):
            make_book(db, author, title=f"Recent History {day}", created_at=now - timedelta(days=day), category_id=other.id)
        for day in range(3, 6):
            make_book(db, author, title=f"Science {day}", created_at=now - timedelta(days=day), category_id=science.id)

        titles = [b.title for b in BookService.list_personalized(db, category="Science", limit=2)]
        assert titles == ["Science 3", "Science 4"]

    def test_visibility_of_unapproved_books(self, db):
        author = make_user(db, "writer", role="author")
        reader = make_user(db, "reader")
        book = make_book(db, author, status="pending")

        assert BookService.get_visible_book(db, book.id) is None
        assert BookService.get_visible_book(db, book.id, viewer_id=reader.id) is None
        assert BookService.get_visible_book(db, book.id, viewer_id=author.id) is book
        assert BookService.get_visible_book(db, book.id, viewer_id=reader.id, viewer_is_admin=True) is book

        BookService.set_status(db, book.id, "approved")
        assert BookService.get_visible_book(db, book.id) is book

    def test_trending_by_rating(self, db):
        author = make_user(db, "writer", role="author")
        make_book(db, author, title="Okay", avg_rating=3.1)
        make_book(db, author, title="Great", avg_rating=4.8)
        make_book(db, author, title="Hidden", avg_rating=5.0, status="rejected")

        assert [b.title for b in BookService.list_trending(db)] == ["Great", "Okay"]

    def test_moderation(self, db):
        author = make_user(db, "writer", role="author")
        book = BookService.upload_book(db, author, "Draft", total_pages=10)

        assert [b.id for b in BookService.list_by_status(db, "pending")] == [book.id]
        assert BookService.set_status(db, book.id, "approved").status == "approved"
        assert BookService.list_by_status(db, "pending") == []

        with pytest.raises(ValueError):
            BookService.set_status(db, book.id, "published")

    def test_serialize_book_includes_author(self, db):
        author = make_user(db, "writer", role="author")
        book = make_book(db, author, title="Echoes", tags=["ai"])

        data = serialize_book(book)

        assert data["author"] == "writer"
        assert data["tags"] == ["ai"]
        assert data["status"] == "approved"


class TestCategoryService:

    def test_duplicate_name_rejected(self, db):
        CategoryService.create_category(db, "Science")
        with pytest.raises(ValueError):
            CategoryService.create_category(db, "Science")

    def test_book_count_and_delete_guard(self, db):
        author = make_user(db, "writer", role="author")
        science = CategoryService.create_category(db, "Science")
        history = CategoryService.create_category(db, "History")
        make_book(db, author, category_id=science.id)

        counts = {c["name"]: c["book_count"] for c in CategoryService.list_categories(db)}
        assert counts == {"Science": 1, "History": 0}

        with pytest.raises(ValueError):
            CategoryService.delete_category(db, science.id)
        CategoryService.delete_category(db, history.id)
        assert CategoryService.get_category(db, history.id) is None

    def test_toggle_hides_from_storefront(self, db):
        category = CategoryService.create_category(db, "Poetry")
        CategoryService.toggle_active(db, category.id)
        assert CategoryService.list_active(db) == []

    def test_update_keeps_unset_fields(self, db):
        category = CategoryService.create_category(db, "Poetry", color="#ec4899")
        updated = CategoryService.update_category(db, category.id, description="Verse", color=None)
        assert updated.description == "Verse"
        assert updated.color == "#ec4899"


class TestMusicService:

    def test_create_requires_file(self, db):
        with pytest.raises(ValueError):
            MusicService.create_music(db, "Silence", "")

    def test_toggle(self, db):
        music = MusicService.create_music(db, "Rain", "/music/rain.mp3")
        assert MusicService.toggle_active(db, music.id).is_active is False


class TestRatingService:

    def test_rating_upsert_recomputes_average(self, db):
        author = make_user(db, "writer", role="author")
        alice = make_user(db, "alice")
        bob = make_user(db, "bob")
        book = make_book(db, author)

        RatingService.submit_rating(db, alice.id, book.id, 5)
        RatingService.submit_rating(db, bob.id, book.id, 2)
        RatingService.submit_rating(db, bob.id, book.id, 4, review="Grew on me")

        db.refresh(book)
        assert book.avg_rating == 4.5
        assert len(RatingService.list_reviews(db, book.id)) == 2

    def test_rating_out_of_range(self, db):
        author = make_user(db, "writer", role="author")
        book = make_book(db, author)
        with pytest.raises(ValueError):
            RatingService.submit_rating(db, author.id, book.id, 6)

    def test_pending_book_cannot_be_rated_by_readers(self, db):
        author = make_user(db, "writer", role="author")
        reader = make_user(db, "reader")
        book = make_book(db, author, status="pending")

        with pytest.raises(ValueError):
            RatingService.submit_rating(db, reader.id, book.id, 5)
        assert RatingService.submit_rating(db, reader.id, book.id, 5, is_admin=True).rating == 5


class TestLibraryService:

    def test_shelves(self, db):
        reader = make_user(db, "reader")
        author = make_user(db, "writer", role="author")
        reading = make_book(db, author, title="Reading")
        finished = make_book(db, author, title="Finished")
        db.add_all([
            UserBook(id="ub-r", user_id=reader.id, book_id=reading.id, reading_progress=40),
            UserBook(id="ub-f", user_id=reader.id, book_id=finished.id, reading_progress=100,
                     finished_reading_at=datetime.utcnow()),
        ])
        db.commit()
        LibraryService.toggle_favorite(db, reader.id, finished.id)

        def titles(shelf):
            return {b["title"] for b in LibraryService.list_library(db, reader.id, shelf)}

        assert titles(None) == {"Reading", "Finished"}
        assert titles("reading") == {"Reading"}
        assert titles("finished") == {"Finished"}
        assert titles("favorites") == {"Finished"}

        with pytest.raises(ValueError):
            LibraryService.list_library(db, reader.id, "wishlist")

    def test_favorite_without_progress_creates_row(self, db):
        reader = make_user(db, "reader")
        author = make_user(db, "writer", role="author")
        book = make_book(db, author)

        user_book = LibraryService.toggle_favorite(db, reader.id, book.id)
        assert user_book.is_favorite is True
        assert user_book.reading_progress == 0

        assert LibraryService.toggle_favorite(db, reader.id, book.id).is_favorite is False


class TestReaderService:

    @pytest.fixture
    def registry(self, session_factory, scheduler, reader_config):
        registry = SessionRegistry(DatabaseReaderGateway(session_factory), scheduler, reader_config)
        yield registry
        registry.close_all()

    def test_resume_from_saved_progress(self, db, registry):
        reader = make_user(db, "reader")
        book = make_book(db, reader, total_pages=200)
        db.add(UserBook(id="ub-1", user_id=reader.id, book_id=book.id,
                        current_page=70, reading_progress=35, reading_time=25))
        db.commit()

        session = ReaderService.open_session(db, registry, reader.id, book.id)

        assert session.current_page == 70
        assert session.elapsed_minutes == 25

    def test_explicit_progress_wins(self, db, registry):
        reader = make_user(db, "reader")
        book = make_book(db, reader, total_pages=100)
        session = ReaderService.open_session(db, registry, reader.id, book.id, initial_progress=35)
        assert session.current_page == 35

    def test_reopen_returns_live_session(self, db, registry):
        reader = make_user(db, "reader")
        book = make_book(db, reader)
        first = ReaderService.open_session(db, registry, reader.id, book.id, 10)
        second = ReaderService.open_session(db, registry, reader.id, book.id, 90)

        assert first is second
        assert len(registry) == 1

    def test_missing_book(self, db, registry):
        reader = make_user(db, "reader")
        with pytest.raises(ValueError):
            ReaderService.open_session(db, registry, reader.id, "missing")

    def test_unapproved_book_only_opens_for_author_and_admin(self, db, registry):
        author = make_user(db, "writer", role="author")
        reader = make_user(db, "reader")
        book = make_book(db, author, status="rejected")

        with pytest.raises(ValueError):
            ReaderService.open_session(db, registry, reader.id, book.id)
        assert len(registry) == 0

        assert ReaderService.open_session(db, registry, author.id, book.id).book.id == book.id
        assert ReaderService.open_session(db, registry, reader.id, book.id, is_admin=True).user_id == reader.id

    def test_book_without_pages(self, db, registry):
        reader = make_user(db, "reader")
        book = make_book(db, reader, total_pages=0)
        with pytest.raises(ValueError):
            ReaderService.open_session(db, registry, reader.id, book.id)

    def test_close_persists_to_database(self, db, registry):
        reader = make_user(db, "reader")
        book = make_book(db, reader, total_pages=100)
        session = ReaderService.open_session(db, registry, reader.id, book.id, 35)
        session.turn_page(1)

        assert ReaderService.close_session(registry, reader.id, book.id) is True
        assert ReaderService.close_session(registry, reader.id, book.id) is False

        db.expire_all()
        row = db.query(UserBook).filter(UserBook.book_id == book.id).one()
        assert row.current_page == 36
        assert row.reading_progress == 36
        with pytest.raises(ValueError):
            ReaderService.get_session(registry, reader.id, book.id)

    def test_find_track(self, db, registry):
        music = MusicService.create_music(db, "Rain", "/music/rain.mp3")
        assert ReaderService.find_track(registry, music.id).title == "Rain"

        MusicService.toggle_active(db, music.id)
        with pytest.raises(ValueError):
            ReaderService.find_track(registry, music.id)
