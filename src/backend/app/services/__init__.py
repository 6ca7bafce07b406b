"""
Services package
"""

from .user_service import UserService
from .book_service import BookService
from .category_service import CategoryService
from .music_service import MusicService
from .rating_service import RatingService
from .library_service import LibraryService
from .reader_gateway import DatabaseReaderGateway
from .reader_service import ReaderService

__all__ = [
    "UserService",
    "BookService",
    "CategoryService",
    "MusicService",
    "RatingService",
    "LibraryService",
    "DatabaseReaderGateway",
    "ReaderService",
]
