"""Typed records for books and library comparisons."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(item) for item in value]


@dataclass(frozen=True)
class Book:
    """A book entry in a library listing."""

    id: int
    title: str
    authors: list[str] = field(default_factory=list)
    formats: list[str] = field(default_factory=list)
    size: Optional[int] = None
    last_modified: Optional[float] = None
    path: Optional[str] = None
    formatted_size: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Book":
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            authors=_str_list(data.get("authors")),
            formats=_str_list(data.get("formats")),
            size=data.get("size"),
            last_modified=data.get("last_modified"),
            path=data.get("path"),
            formatted_size=data.get("formatted_size"),
        )


@dataclass(frozen=True)
class BookMetadata:
    """Full metadata for a single book."""

    id: int
    title: str
    authors: list[str] = field(default_factory=list)
    publisher: Optional[str] = None
    published: Optional[str] = None
    isbn: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    rating: Optional[float] = None
    comments: Optional[str] = None
    series: Optional[str] = None
    series_index: Optional[float] = None
    language: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BookMetadata":
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            authors=_str_list(data.get("authors")),
            publisher=data.get("publisher"),
            published=data.get("published"),
            isbn=data.get("isbn"),
            tags=_str_list(data.get("tags")),
            rating=data.get("rating"),
            comments=data.get("comments"),
            series=data.get("series"),
            series_index=data.get("series_index"),
            language=data.get("language"),
        )


@dataclass(frozen=True)
class BookFile:
    """An e-book file attached to an add-book request."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class AddBookRequest:
    """Caller input for adding a book to the primary library."""

    title: str
    authors: list[str]
    file: Optional[BookFile]
    publisher: Optional[str] = None
    published: Optional[str] = None
    isbn: Optional[str] = None
    language: Optional[str] = None
    series: Optional[str] = None
    series_index: Optional[float] = None
    comments: Optional[str] = None


@dataclass(frozen=True)
class AddBookResponse:
    id: int
    title: str
    authors: list[str]
    message: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AddBookResponse":
        return cls(
            id=int(data.get("id", 0)),
            title=data.get("title", ""),
            authors=_str_list(data.get("authors")),
            message=data.get("message", ""),
        )


@dataclass(frozen=True)
class DeleteBookResponse:
    message: str
    deleted_id: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeleteBookResponse":
        return cls(message=data.get("message", ""), deleted_id=int(data.get("deleted_id", 0)))


@dataclass(frozen=True)
class ComparisonReplicaResult:
    """Differences between the primary library and one replica."""

    name: str
    path: str
    status: str
    unique_to_main_library: int = 0
    unique_to_replica: int = 0
    unique_to_main_library_books: list[Book] = field(default_factory=list)
    unique_to_replica_books: list[Book] = field(default_factory=list)
    error: Optional[str] = None
    note: Optional[str] = None
    total_calibre_books: Optional[int] = None
    total_replica_books: Optional[int] = None
    common_books: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparisonReplicaResult":
        return cls(
            name=data.get("name", ""),
            path=data.get("path", ""),
            status=data.get("status", "error"),
            unique_to_main_library=int(data.get("unique_to_main_library") or 0),
            unique_to_replica=int(data.get("unique_to_replica") or 0),
            unique_to_main_library_books=[
                Book.from_dict(book) for book in data.get("unique_to_main_library_books") or []
            ],
            unique_to_replica_books=[Book.from_dict(book) for book in data.get("unique_to_replica_books") or []],
            error=data.get("error"),
            note=data.get("note"),
            total_calibre_books=data.get("total_calibre_books"),
            total_replica_books=data.get("total_replica_books"),
            common_books=data.get("common_books"),
        )

    @property
    def differences(self) -> int:
        return self.unique_to_main_library + self.unique_to_replica


@dataclass(frozen=True)
class ComparisonResult:
    """Comparison of the primary library against every replica."""

    current_library_path: str
    replicas: list[ComparisonReplicaResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparisonResult":
        return cls(
            current_library_path=data.get("current_library_path", ""),
            replicas=[ComparisonReplicaResult.from_dict(replica) for replica in data.get("replicas") or []],
        )

    @property
    def total_differences(self) -> int:
        return sum(replica.differences for replica in self.replicas)
