"""Read-only GraphQL queries.

Each function takes a :class:`~hardcover_tui.api.client.DataSource`, runs
one request and returns parsed models. They are called from command
actions on worker threads and hold no state of their own.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from hardcover_tui.api.client import DataSource, GraphQLRequest
from hardcover_tui.api.errors import ParseError, ServerError, Unauthorized
from hardcover_tui.api.models import (
    TAG_CATEGORY_CONTENT_WARNING,
    TAG_CATEGORY_GENRE,
    TAG_CATEGORY_MOOD,
    Activity,
    Author,
    Book,
    BookList,
    BookReview,
    BookTags,
    Contribution,
    ListBook,
    ReadingJournal,
    ReadingStatus,
    User,
    UserBook,
)

M = TypeVar("M", bound=BaseModel)

BOOK_FIELDS = """
    id title subtitle description pages rating ratings_count reviews_count
    users_count release_year slug audio_seconds
    image { url }
    contributions { author { id name slug } }
"""

USER_BOOK_FIELDS = f"""
    id book_id status_id rating review review_has_spoilers has_review date_added read_count
    owned starred likes_count privacy_setting_id created_at updated_at
    book {{ {BOOK_FIELDS} }}
    user_book_reads(order_by: {{id: desc}}) {{ id started_at finished_at progress_pages progress_seconds edition_id }}
"""

ME_QUERY = """
query GetMe {
  me {
    id username name bio location books_count followers_count
    followed_users_count pro image { url }
  }
}
"""

USER_BOOKS_QUERY = f"""
query GetUserBooks($where: user_books_bool_exp!, $limit: Int!, $offset: Int!) {{
  user_books(where: $where, order_by: {{updated_at: desc}}, limit: $limit, offset: $offset) {{
    {USER_BOOK_FIELDS}
  }}
}}
"""

USER_BOOK_QUERY = f"""
query GetUserBook($id: Int!) {{
  user_books_by_pk(id: $id) {{ {USER_BOOK_FIELDS} }}
}}
"""

USER_BOOK_BY_BOOK_QUERY = f"""
query GetUserBookByBookId($userId: Int!, $bookId: Int!) {{
  user_books(where: {{user_id: {{_eq: $userId}}, book_id: {{_eq: $bookId}}}}, limit: 1) {{
    {USER_BOOK_FIELDS}
  }}
}}
"""

BOOK_QUERY = f"""
query GetBook($id: Int!) {{
  books_by_pk(id: $id) {{ {BOOK_FIELDS} }}
}}
"""

BOOK_TAGS_QUERY = """
query GetBookTags($bookId: Int!) {
  books_by_pk(id: $bookId) {
    taggings { tag { tag tag_category_id } }
  }
}
"""

BOOK_REVIEWS_QUERY = """
query GetBookReviews($bookId: Int!, $limit: Int!) {
  user_books(
    where: {book_id: {_eq: $bookId}, has_review: {_eq: true}}
    order_by: {likes_count: desc}
    limit: $limit
  ) {
    id rating review review_has_spoilers likes_count created_at
    user { id username name }
  }
}
"""

SEARCH_QUERY = """
query SearchBooks($query: String!, $perPage: Int!, $page: Int!) {
  search(query: $query, query_type: "Book", per_page: $perPage, page: $page,
         fields: "title,author_names", weights: "7,3") {
    results
  }
}
"""

LISTS_QUERY = """
query GetLists($userId: Int!) {
  lists(where: {user_id: {_eq: $userId}}, order_by: {updated_at: desc}) {
    id name description books_count likes_count public ranked
    privacy_setting_id slug user_id updated_at
  }
}
"""

LIST_BOOKS_QUERY = f"""
query GetListBooks($listId: Int!) {{
  list_books(where: {{list_id: {{_eq: $listId}}}}, order_by: {{position: asc}}) {{
    id list_id book_id position date_added
    book {{ {BOOK_FIELDS} }}
  }}
}}
"""

READING_JOURNALS_QUERY = """
query GetReadingJournals($where: reading_journals_bool_exp!, $limit: Int!) {
  reading_journals(where: $where, order_by: {action_at: desc}, limit: $limit) {
    id event entry action_at book_id privacy_setting_id likes_count created_at
    book { id title }
  }
}
"""


ACTIVITY_FIELDS = """
    id event data book_id likes_count privacy_setting_id created_at
    book { id title image { url } }
    user { id username name }
"""

ACTIVITIES_QUERY = f"""
query GetActivities($userId: Int!, $limit: Int!) {{
  activities(where: {{user_id: {{_eq: $userId}}}}, order_by: {{created_at: desc}}, limit: $limit) {{
    {ACTIVITY_FIELDS}
  }}
}}
"""

FOR_YOU_ACTIVITIES_QUERY = f"""
query GetForYouActivities($limit: Int!) {{
  activity_foryou_feed(args: {{feed_limit: $limit, feed_offset: 0}}, order_by: {{created_at: desc}}, limit: $limit) {{
    {ACTIVITY_FIELDS}
  }}
}}
"""


def _status_counts_query() -> str:
    aliases = "\n".join(
        f"  s{s.value}: user_books_aggregate(where: {{user_id: {{_eq: $userId}}, "
        f"status_id: {{_eq: {s.value}}}}}) {{ aggregate {{ count }} }}"
        for s in ReadingStatus
    )
    return f"query GetStatusCounts($userId: Int!) {{\n{aliases}\n}}\n"


STATUS_COUNTS_QUERY = _status_counts_query()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_me(source: DataSource) -> User:
    data = source.query(GraphQLRequest("GetMe", ME_QUERY))
    rows = data.get("me") or []
    if not rows:
        raise Unauthorized("Not authenticated or no user found")
    return _parse(User, rows[0], "me")


def get_user_books(
    source: DataSource,
    user_id: int,
    status: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[UserBook]:
    """The user's library, most recently updated first."""
    where: dict[str, Any] = {"user_id": {"_eq": user_id}}
    if status is not None:
        where["status_id"] = {"_eq": status}
    data = source.query(
        GraphQLRequest(
            "GetUserBooks",
            USER_BOOKS_QUERY,
            {"where": where, "limit": limit, "offset": offset},
        )
    )
    return _parse_list(UserBook, data.get("user_books"), "user_books")


def get_currently_reading(source: DataSource, user_id: int, limit: int = 20) -> list[UserBook]:
    return get_user_books(source, user_id, ReadingStatus.CURRENTLY_READING, limit, 0)


def get_user_book(source: DataSource, user_book_id: int) -> UserBook:
    data = source.query(GraphQLRequest("GetUserBook", USER_BOOK_QUERY, {"id": user_book_id}))
    row = data.get("user_books_by_pk")
    if row is None:
        raise ServerError(f"User book {user_book_id} not found")
    return _parse(UserBook, row, "user_books_by_pk")


def get_user_book_by_book_id(source: DataSource, user_id: int, book_id: int) -> UserBook | None:
    """The user's entry for *book_id*, or None when it is not in the library."""
    data = source.query(
        GraphQLRequest(
            "GetUserBookByBookId",
            USER_BOOK_BY_BOOK_QUERY,
            {"userId": user_id, "bookId": book_id},
        )
    )
    rows = _parse_list(UserBook, data.get("user_books"), "user_books")
    return rows[0] if rows else None


def get_book(source: DataSource, book_id: int) -> Book:
    data = source.query(GraphQLRequest("GetBook", BOOK_QUERY, {"id": book_id}))
    row = data.get("books_by_pk")
    if row is None:
        raise ServerError(f"Book {book_id} not found")
    return _parse(Book, row, "books_by_pk")


def get_book_tags(source: DataSource, book_id: int) -> BookTags:
    data = source.query(GraphQLRequest("GetBookTags", BOOK_TAGS_QUERY, {"bookId": book_id}))
    book = data.get("books_by_pk") or {}
    buckets: dict[int, list[str]] = {
        TAG_CATEGORY_GENRE: [],
        TAG_CATEGORY_MOOD: [],
        TAG_CATEGORY_CONTENT_WARNING: [],
    }
    for tagging in book.get("taggings") or []:
        tag = (tagging or {}).get("tag") or {}
        name = tag.get("tag")
        bucket = buckets.get(tag.get("tag_category_id"))
        if name and bucket is not None and name not in bucket:
            bucket.append(name)
    return BookTags(
        genres=buckets[TAG_CATEGORY_GENRE],
        moods=buckets[TAG_CATEGORY_MOOD],
        content_warnings=buckets[TAG_CATEGORY_CONTENT_WARNING],
    )


def get_book_reviews(source: DataSource, book_id: int, limit: int = 10) -> list[BookReview]:
    data = source.query(
        GraphQLRequest("GetBookReviews", BOOK_REVIEWS_QUERY, {"bookId": book_id, "limit": limit})
    )
    return _parse_list(BookReview, data.get("user_books"), "user_books")


def search_books(source: DataSource, query: str, per_page: int = 20, page: int = 1) -> list[Book]:
    """Full-text book search.

    The ``results`` field is a JSON blob (sometimes double-encoded) holding
    either ``{"hits": [...]}``, a list of hit groups, or ``{"grouped_hits": [...]}``.
    """
    data = source.query(
        GraphQLRequest(
            "SearchBooks",
            SEARCH_QUERY,
            {"query": query, "perPage": per_page, "page": page},
        )
    )
    results = (data.get("search") or {}).get("results")
    if isinstance(results, str):
        try:
            results = json.loads(results)
        except ValueError as exc:
            raise ParseError("search results are not valid JSON") from exc
    return [_book_from_hit(hit) for hit in _search_hits(results)]


def get_lists(source: DataSource, user_id: int) -> list[BookList]:
    data = source.query(GraphQLRequest("GetLists", LISTS_QUERY, {"userId": user_id}))
    return _parse_list(BookList, data.get("lists"), "lists")


def get_list_books(source: DataSource, list_id: int) -> list[ListBook]:
    data = source.query(GraphQLRequest("GetListBooks", LIST_BOOKS_QUERY, {"listId": list_id}))
    return _parse_list(ListBook, data.get("list_books"), "list_books")


def get_status_counts(source: DataSource, user_id: int) -> dict[ReadingStatus, int]:
    data = source.query(GraphQLRequest("GetStatusCounts", STATUS_COUNTS_QUERY, {"userId": user_id}))
    counts: dict[ReadingStatus, int] = {}
    for status in ReadingStatus:
        node = data.get(f"s{status.value}") or {}
        try:
            counts[status] = int((node.get("aggregate") or {}).get("count") or 0)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"bad aggregate for status {status.value}") from exc
    return counts


def get_reading_journals(
    source: DataSource,
    user_id: int,
    book_id: int | None = None,
    limit: int = 50,
) -> list[ReadingJournal]:
    where: dict[str, Any] = {"user_id": {"_eq": user_id}}
    if book_id is not None:
        where["book_id"] = {"_eq": book_id}
    data = source.query(
        GraphQLRequest("GetReadingJournals", READING_JOURNALS_QUERY, {"where": where, "limit": limit})
    )
    return _parse_list(ReadingJournal, data.get("reading_journals"), "reading_journals")


def get_activities(source: DataSource, user_id: int, limit: int = 30) -> list[Activity]:
    """The user's own activity, newest first."""
    data = source.query(
        GraphQLRequest("GetActivities", ACTIVITIES_QUERY, {"userId": user_id, "limit": limit})
    )
    return _parse_list(Activity, data.get("activities"), "activities")


def get_for_you_activities(source: DataSource, limit: int = 30) -> list[Activity]:
    data = source.query(GraphQLRequest("GetForYouActivities", FOR_YOU_ACTIVITIES_QUERY, {"limit": limit}))
    return _parse_list(Activity, data.get("activity_foryou_feed"), "activity_foryou_feed")


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------


def _parse(model: type[M], payload: Any, field: str) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(f"Unexpected {field} payload: {exc.error_count()} error(s)") from exc


def _parse_list(model: type[M], payload: Any, field: str) -> list[M]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ParseError(f"Expected a list for {field}")
    return [_parse(model, row, field) for row in payload]


def _search_hits(results: Any) -> list[dict[str, Any]]:
    if not results:
        return []
    if isinstance(results, dict):
        if results.get("hits"):
            return list(results["hits"])
        groups = results.get("grouped_hits") or []
    elif isinstance(results, list):
        groups = results
    else:
        raise ParseError("search results have an unexpected shape")
    hits: list[dict[str, Any]] = []
    for group in groups:
        if isinstance(group, dict):
            hits.extend(group.get("hits") or [])
    return hits


def _book_from_hit(hit: dict[str, Any]) -> Book:
    doc = hit.get("document") or {}
    try:
        book_id = int(doc.get("id"))
    except (TypeError, ValueError) as exc:
        raise ParseError("search hit without a numeric id") from exc
    pages = _int_or_none(doc.get("pages"))
    return Book(
        id=book_id,
        title=doc.get("title") or "",
        slug=doc.get("slug"),
        description=doc.get("description") or None,
        pages=pages if pages else None,
        rating=doc.get("rating") or None,
        users_count=int(doc.get("users_count") or 0),
        release_year=doc.get("release_year") or None,
        contributions=[
            Contribution(author=Author(name=name)) for name in doc.get("author_names") or []
        ],
        genres=list(doc.get("genres") or []),
        has_audiobook=bool(doc.get("has_audiobook")),
        has_ebook=bool(doc.get("has_ebook")),
    )


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
