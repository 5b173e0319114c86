"""
Book API Routes

Minimal catalog: the books that order items point at, and their current
prices.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from bookstore.api.dependencies import get_book_repository, require_admin
from bookstore.api.schemas import BookCreate, BookPriceUpdate, BookResponse, ErrorResponse
from bookstore.exceptions import NotFoundError
from bookstore.security import Identity


router = APIRouter(prefix="/books", tags=["books"])


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse, "description": "Admin access required"},
        409: {"model": ErrorResponse, "description": "Book already exists"},
    },
)
def create_book(
    book: BookCreate,
    identity: Identity = Depends(require_admin),
    repo=Depends(get_book_repository),
):
    """Add a book to the catalog."""
    logger.info(f"Creating book: {book.title} by {book.author}")
    return repo.create(**book.model_dump())


@router.get("", response_model=list[BookResponse])
def list_books(
    q: Optional[str] = Query(None, max_length=200, description="Title/author substring"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    repo=Depends(get_book_repository),
):
    """List catalog entries."""
    return repo.list_all(limit=limit, offset=offset, query=q)


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    responses={404: {"model": ErrorResponse, "description": "Book not found"}},
)
def get_book(book_id: int, repo=Depends(get_book_repository)):
    book = repo.get(book_id)
    if book is None:
        raise NotFoundError("Book", book_id)
    return book


@router.patch(
    "/{book_id}/price",
    response_model=BookResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Admin access required"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def update_book_price(
    book_id: int,
    update: BookPriceUpdate,
    identity: Identity = Depends(require_admin),
    repo=Depends(get_book_repository),
):
    """
    Change a book's current price.

    Orders placed earlier keep the price they were placed at.
    """
    logger.info(f"Admin {identity.username} repricing book {book_id} to {update.price}")
    return repo.update_price(book_id, update.price)
