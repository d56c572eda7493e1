# bookstore_service/app/catalog.py
"""Static book catalog. Loaded once at import and never written to."""
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel


class Book(BaseModel):
    id: str
    title: str
    author: str
    description: str = ""
    price: float
    genres: FrozenSet[str] = frozenset()
    rating: float = 0.0
    reviews_count: int = 0
    in_stock: bool = True
    image: Optional[str] = None

    class Config:
        frozen = True


BOOKS: Tuple[Book, ...] = (
    Book(
        id="1",
        title="The Great Gatsby",
        author="F. Scott Fitzgerald",
        description="A portrait of the Jazz Age told through the eyes of Nick Carraway.",
        price=12.99,
        genres=frozenset({"Classic", "Fiction"}),
        rating=4.5,
        reviews_count=1250,
        image="/static/images/great-gatsby.jpg",
    ),
    Book(
        id="2",
        title="To Kill a Mockingbird",
        author="Harper Lee",
        description="A story of racial injustice and childhood innocence in the American South.",
        price=14.99,
        genres=frozenset({"Classic", "Fiction", "Drama"}),
        rating=4.8,
        reviews_count=2100,
        image="/static/images/mockingbird.jpg",
    ),
    Book(
        id="3",
        title="1984",
        author="George Orwell",
        description="A dystopian novel about totalitarianism and surveillance.",
        price=13.99,
        genres=frozenset({"Dystopian", "Science Fiction", "Classic"}),
        rating=4.7,
        reviews_count=1800,
        image="/static/images/1984.jpg",
    ),
    Book(
        id="4",
        title="Pride and Prejudice",
        author="Jane Austen",
        description="Elizabeth Bennet and Mr. Darcy navigate manners and marriage.",
        price=11.99,
        genres=frozenset({"Romance", "Classic"}),
        rating=4.6,
        reviews_count=1500,
        image="/static/images/pride-prejudice.jpg",
    ),
    Book(
        id="5",
        title="The Catcher in the Rye",
        author="J.D. Salinger",
        description="Holden Caulfield wanders New York after leaving prep school.",
        price=10.99,
        genres=frozenset({"Fiction", "Coming-of-age"}),
        rating=4.1,
        reviews_count=980,
        in_stock=False,
        image="/static/images/catcher-rye.jpg",
    ),
    Book(
        id="6",
        title="The Hobbit",
        author="J.R.R. Tolkien",
        description="Bilbo Baggins is swept into a quest for a dragon's treasure.",
        price=15.99,
        genres=frozenset({"Fantasy", "Adventure"}),
        rating=4.9,
        reviews_count=3200,
        image="/static/images/hobbit.jpg",
    ),
    Book(
        id="7",
        title="Sapiens",
        author="Yuval Noah Harari",
        description="A brief history of humankind from the Stone Age to today.",
        price=18.99,
        genres=frozenset({"Non-fiction", "History"}),
        rating=4.4,
        reviews_count=2700,
        image="/static/images/sapiens.jpg",
    ),
    Book(
        id="8",
        title="Dune",
        author="Frank Herbert",
        description="Paul Atreides and the desert planet Arrakis.",
        price=16.99,
        genres=frozenset({"Science Fiction", "Adventure"}),
        rating=4.6,
        reviews_count=2300,
        image="/static/images/dune.jpg",
    ),
)


class Review(BaseModel):
    id: str
    book_id: str
    author: str
    rating: int
    title: str
    comment: str
    timestamp: datetime
    verified: bool = False

    class Config:
        frozen = True


REVIEWS: Tuple[Review, ...] = (
    Review(
        id="r1",
        book_id="1",
        author="Margaret W.",
        rating=5,
        title="Still dazzling",
        comment="Every sentence earns its place. The ending stays with you.",
        timestamp=datetime(2024, 3, 2, 14, 30, tzinfo=timezone.utc),
        verified=True,
    ),
    Review(
        id="r2",
        book_id="1",
        author="Daniel K.",
        rating=4,
        title="Short and sharp",
        comment="Read it in one evening. Gatsby is harder to like the second time.",
        timestamp=datetime(2024, 5, 18, 9, 5, tzinfo=timezone.utc),
    ),
    Review(
        id="r3",
        book_id="3",
        author="Priya S.",
        rating=5,
        title="Uncomfortably current",
        comment="Newspeak felt less like fiction than I expected.",
        timestamp=datetime(2024, 1, 11, 20, 0, tzinfo=timezone.utc),
        verified=True,
    ),
    Review(
        id="r4",
        book_id="6",
        author="Tom B.",
        rating=5,
        title="Read it aloud",
        comment="Our kids asked for another chapter every night.",
        timestamp=datetime(2023, 12, 24, 18, 45, tzinfo=timezone.utc),
        verified=True,
    ),
    Review(
        id="r5",
        book_id="8",
        author="Alex R.",
        rating=4,
        title="Slow start, huge payoff",
        comment="The first hundred pages are dense, stick with it.",
        timestamp=datetime(2024, 2, 7, 11, 15, tzinfo=timezone.utc),
    ),
)

_REVIEWS_BY_BOOK = {}
for _review in REVIEWS:
    _REVIEWS_BY_BOOK.setdefault(_review.book_id, []).append(_review)

_BY_ID = {book.id: book for book in BOOKS}


def list_all() -> Tuple[Book, ...]:
    return BOOKS


def by_id(book_id: str) -> Optional[Book]:
    return _BY_ID.get(book_id)


def reviews_for(book_id: str) -> List[Review]:
    """Reviews of one book, newest first. Unknown books have none."""
    return sorted(_REVIEWS_BY_BOOK.get(book_id, ()), key=lambda review: review.timestamp, reverse=True)
