"""Client for book listing and management endpoints."""

import logging
from typing import Any, Callable, List, Optional

import aiohttp

from library_sync.config.settings import Settings
from library_sync.core.notifications import Severity
from library_sync.data.cache import TTLCache
from library_sync.data.models import (
    AddBookRequest,
    AddBookResponse,
    Book,
    BookMetadata,
    DeleteBookResponse,
)

from .error_handling import ApiError, ErrorCategory, ValidationError
from .request_pipeline import RequestPipeline

BOOKS_SCOPE = "/books"
METADATA_SCOPE = "/metadata"
COVER_SCOPE = "/cover"

OPTIONAL_TEXT_FIELDS = ("publisher", "published", "isbn", "language", "series", "comments")

BooksListener = Callable[[List[Book]], None]


def validate_book_id(book_id: Any) -> int:
    """Reject ids that cannot name a book before any request goes out."""
    if isinstance(book_id, bool) or not isinstance(book_id, int) or book_id <= 0:
        raise ValidationError(f"Invalid book ID: {book_id!r}")
    return book_id


def validate_add_book(request: AddBookRequest) -> None:
    if not (request.title or "").strip():
        raise ValidationError("Book title is required")
    if not [author for author in request.authors or [] if author and author.strip()]:
        raise ValidationError("At least one author is required")
    if request.file is None:
        raise ValidationError("A book file is required")
    if request.file.size <= 0:
        raise ValidationError(f"Book file {request.file.filename!r} is empty")


def build_book_form(request: AddBookRequest) -> aiohttp.FormData:
    """Multipart body for an add-book request; blank optional fields are left out."""
    form = aiohttp.FormData()
    form.add_field("title", request.title.strip())
    form.add_field("authors", ",".join(author.strip() for author in request.authors if author and author.strip()))

    for name in OPTIONAL_TEXT_FIELDS:
        value = getattr(request, name)
        if value and value.strip():
            form.add_field(name, value.strip())
    if request.series_index is not None and request.series_index > 0:
        form.add_field("series_index", str(request.series_index))

    form.add_field(
        "file",
        request.file.content,
        filename=request.file.filename,
        content_type=request.file.content_type,
    )
    return form


class BookClient:
    """Reads and changes the primary library through the sync service."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        cache: TTLCache,
        logger_obj: Optional[logging.Logger] = None,
    ):
        self.pipeline = pipeline
        self.cache = cache
        self.logger = logger_obj or logging.getLogger(__name__)
        self.latest_books: List[Book] = []
        self._listeners: List[BooksListener] = []

    def subscribe(self, listener: BooksListener) -> Callable[[], None]:
        """Be told about every fresh or cached book listing."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, books: List[Book]) -> None:
        self.latest_books = books
        for listener in list(self._listeners):
            listener(books)

    async def get_books(self, location_id: str = Settings.DEFAULT_LOCATION_ID, use_cache: bool = True) -> List[Book]:
        """List books in a library location."""
        if not location_id or not str(location_id).strip():
            raise ValidationError("A library location is required")

        cache_key = self.cache.make_key(BOOKS_SCOPE, {"location_id": location_id})
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                books = list(cached)
                self._publish(books)
                return books

        response = await self.pipeline.get(f"/libraries/{location_id}/books")
        if not isinstance(response, dict) or not isinstance(response.get("books"), list):
            raise ApiError(ErrorCategory.DATA, "Invalid response format: missing books array")

        books = [Book.from_dict(item) for item in response["books"]]
        self.cache.set(cache_key, tuple(books))
        self._publish(books)
        self.logger.debug(f"Fetched {len(books)} books for location {location_id}")
        return books

    async def get_book_metadata(self, book_id: int, use_cache: bool = True) -> BookMetadata:
        validate_book_id(book_id)
        cache_key = self.cache.make_key(METADATA_SCOPE, {"book_id": book_id})
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        response = await self.pipeline.get(f"/books/{book_id}/metadata")
        if not isinstance(response, dict) or not isinstance(response.get("metadata"), dict):
            raise ApiError(ErrorCategory.DATA, "Invalid response format: missing metadata")

        metadata = BookMetadata.from_dict(response["metadata"])
        self.cache.set(cache_key, metadata)
        return metadata

    async def get_book_cover(self, book_id: int, use_cache: bool = True) -> bytes:
        """Raw cover image bytes."""
        validate_book_id(book_id)
        cache_key = self.cache.make_key(COVER_SCOPE, {"book_id": book_id})
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        cover = await self.pipeline.get(f"/books/{book_id}/cover", expect="bytes")
        self.cache.set(cache_key, cover)
        return cover

    async def add_book(self, request: AddBookRequest) -> AddBookResponse:
        """Upload a new book to the primary library."""
        validate_add_book(request)

        response = await self.pipeline.post("/books/add", data=lambda: build_book_form(request))
        self._invalidate_book_caches()
        self.pipeline.notifier.notify("Book added successfully", Severity.SUCCESS)
        return AddBookResponse.from_dict(response or {})

    async def delete_book(self, book_id: int) -> DeleteBookResponse:
        validate_book_id(book_id)

        response = await self.pipeline.delete(f"/books/{book_id}")
        self._invalidate_book_caches()
        self.pipeline.notifier.notify("Book deleted successfully", Severity.SUCCESS)
        return DeleteBookResponse.from_dict(response or {"deleted_id": book_id})

    async def refresh_books(self, location_id: str = Settings.DEFAULT_LOCATION_ID) -> List[Book]:
        self.cache.invalidate(BOOKS_SCOPE)
        return await self.get_books(location_id, use_cache=False)

    def clear_cache(self) -> None:
        self.cache.invalidate()

    def _invalidate_book_caches(self) -> None:
        for scope in (BOOKS_SCOPE, METADATA_SCOPE, COVER_SCOPE):
            self.cache.invalidate(scope)
