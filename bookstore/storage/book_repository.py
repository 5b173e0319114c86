"""
Book Repository

Catalog storage for the books that order items reference. Only the fields
the order workflow needs are kept: identity, display data and the current
price.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from bookstore.exceptions import ConflictError, NotFoundError

from .database import Database
from .models import BookModel


@dataclass
class StoredBook:
    """Data class for book data transfer."""

    id: int
    title: str
    author: str
    price: Decimal

    isbn_13: Optional[str] = None
    description: Optional[str] = None

    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: BookModel) -> "StoredBook":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            title=model.title,
            author=model.author,
            price=model.price,
            isbn_13=model.isbn_13,
            description=model.description,
            added_at=model.added_at,
            updated_at=model.updated_at,
        )


class BookRepository:
    """
    Repository for catalog CRUD operations.

    Usage:
        repo = BookRepository(Database("sqlite:///./bookstore.db"))
        book = repo.create(title="Dune", author="Frank Herbert", price=Decimal("9.99"))
    """

    def __init__(self, database: Database):
        self.db = database

    def create(
        self,
        title: str,
        author: str,
        price: Decimal,
        **kwargs,
    ) -> StoredBook:
        """
        Create a new book.

        Args:
            title: Book title
            author: Primary author
            price: Current list price
            **kwargs: isbn_13, description

        Raises:
            ConflictError: ISBN already in the catalog.
        """
        try:
            with self.db.session() as session:
                book = BookModel(title=title, author=author, price=price, **kwargs)
                session.add(book)
                session.flush()
                stored = StoredBook.from_model(book)
        except IntegrityError as e:
            raise ConflictError(
                "Book already exists",
                f"Book with ISBN {kwargs.get('isbn_13')} already exists",
            ) from e

        logger.info(f"Created book {stored.id}: {stored.title} by {stored.author}")
        return stored

    def get(self, book_id: int) -> Optional[StoredBook]:
        """Get book by ID."""
        with self.db.session() as session:
            book = session.get(BookModel, book_id)
            return StoredBook.from_model(book) if book else None

    def get_many(self, book_ids: list[int]) -> dict[int, StoredBook]:
        """Load several books in one query, keyed by id."""
        if not book_ids:
            return {}
        with self.db.session() as session:
            rows = session.execute(
                select(BookModel).where(BookModel.id.in_(set(book_ids)))
            ).scalars().all()
            return {row.id: StoredBook.from_model(row) for row in rows}

    def get_by_isbn(self, isbn: str) -> Optional[StoredBook]:
        isbn = isbn.replace("-", "").replace(" ", "")
        with self.db.session() as session:
            book = session.execute(
                select(BookModel).where(BookModel.isbn_13 == isbn)
            ).scalar_one_or_none()
            return StoredBook.from_model(book) if book else None

    def update_price(self, book_id: int, price: Decimal) -> StoredBook:
        """
        Change the current list price.

        Existing order items keep the price they were created with.
        """
        with self.db.session() as session:
            book = session.get(BookModel, book_id)
            if book is None:
                raise NotFoundError("Book", book_id)

            old_price = book.price
            book.price = price
            book.updated_at = datetime.utcnow()
            session.flush()

            logger.info(f"Book {book_id} price changed {old_price} -> {price}")
            return StoredBook.from_model(book)

    def list_all(
        self,
        limit: int = 100,
        offset: int = 0,
        query: Optional[str] = None,
    ) -> list[StoredBook]:
        """
        List books, optionally filtered by a title/author substring.

        Args:
            limit: Max results
            offset: Skip count
            query: Case-insensitive substring to match
        """
        with self.db.session() as session:
            stmt = select(BookModel)
            if query:
                pattern = f"%{query}%"
                stmt = stmt.where(
                    or_(BookModel.title.ilike(pattern), BookModel.author.ilike(pattern))
                )
            stmt = stmt.order_by(BookModel.title.asc()).offset(offset).limit(limit)
            return [StoredBook.from_model(b) for b in session.execute(stmt).scalars()]
