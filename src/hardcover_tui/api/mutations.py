"""GraphQL mutations.

Mutations return the id the server assigned or echoed back. A payload
with no id is reported as a :class:`ServerError` carrying the server's
own error text when it sent one.
"""

from __future__ import annotations

from typing import Any

from hardcover_tui.api.client import DataSource, GraphQLRequest
from hardcover_tui.api.errors import ServerError
from hardcover_tui.api.models import Privacy

INSERT_USER_BOOK = """
mutation InsertUserBook($bookId: Int!, $statusId: Int!) {
  insert_user_book(object: {book_id: $bookId, status_id: $statusId}) { id error }
}
"""

UPDATE_USER_BOOK_STATUS = """
mutation UpdateUserBookStatus($id: Int!, $statusId: Int!) {
  update_user_book(id: $id, object: {status_id: $statusId}) { id error }
}
"""

UPDATE_USER_BOOK_RATING = """
mutation UpdateUserBookRating($id: Int!, $rating: numeric) {
  update_user_book(id: $id, object: {rating: $rating}) { id error }
}
"""

UPDATE_USER_BOOK_REVIEW = """
mutation UpdateUserBookReview($id: Int!, $review: String!, $spoilers: Boolean!) {
  update_user_book(id: $id, object: {review_raw: $review, review_has_spoilers: $spoilers}) { id error }
}
"""

DELETE_USER_BOOK = """
mutation DeleteUserBook($id: Int!) {
  delete_user_book(id: $id) { id }
}
"""

UPDATE_USER_BOOK_READ = """
mutation UpdateUserBookRead($id: Int!, $progressPages: Int) {
  update_user_book_read(id: $id, object: {progress_pages: $progressPages}) { id error }
}
"""

UPDATE_USER_BOOK_READ_DATES = """
mutation UpdateUserBookReadDates($id: Int!, $startedAt: date, $finishedAt: date) {
  update_user_book_read(id: $id, object: {started_at: $startedAt, finished_at: $finishedAt}) { id error }
}
"""

INSERT_LIST = """
mutation InsertList($name: String!, $description: String!, $privacySettingId: Int!) {
  insert_list(object: {name: $name, description: $description,
                       privacy_setting_id: $privacySettingId}) { id errors }
}
"""

UPDATE_LIST_PRIVACY = """
mutation UpdateListPrivacy($id: Int!, $privacySettingId: Int!) {
  update_list(id: $id, object: {privacy_setting_id: $privacySettingId}) { id errors }
}
"""

DELETE_LIST = """
mutation DeleteList($id: Int!) {
  delete_list(id: $id) { success }
}
"""

INSERT_LIST_BOOK = """
mutation InsertListBook($listId: Int!, $bookId: Int!, $position: Int!) {
  insert_list_book(object: {list_id: $listId, book_id: $bookId, position: $position}) { id }
}
"""

DELETE_LIST_BOOK = """
mutation DeleteListBook($id: Int!) {
  delete_list_book(id: $id) { id }
}
"""

INSERT_READING_JOURNAL = """
mutation InsertReadingJournal($bookId: Int!, $event: String!, $entry: String!,
                              $privacySettingId: Int!) {
  insert_reading_journal(object: {book_id: $bookId, event: $event, entry: $entry,
                                  privacy_setting_id: $privacySettingId, tags: []}) { id errors }
}
"""

DELETE_READING_JOURNAL = """
mutation DeleteReadingJournal($id: Int!) {
  delete_reading_journal(id: $id) { id }
}
"""


def insert_user_book(source: DataSource, book_id: int, status_id: int) -> int:
    """Add *book_id* to the library. Returns the new user_book id."""
    data = source.query(
        GraphQLRequest("InsertUserBook", INSERT_USER_BOOK, {"bookId": book_id, "statusId": status_id})
    )
    return _require_id(data, "insert_user_book")


def update_user_book_status(source: DataSource, user_book_id: int, status_id: int) -> int:
    data = source.query(
        GraphQLRequest(
            "UpdateUserBookStatus",
            UPDATE_USER_BOOK_STATUS,
            {"id": user_book_id, "statusId": status_id},
        )
    )
    return _require_id(data, "update_user_book")


def update_user_book_rating(source: DataSource, user_book_id: int, rating: float | None) -> int:
    """Set the rating (0.5 steps up to 5). ``None`` clears it."""
    if rating is not None and not 0 < rating <= 5:
        msg = f"rating must be in (0, 5], got {rating}"
        raise ValueError(msg)
    data = source.query(
        GraphQLRequest(
            "UpdateUserBookRating",
            UPDATE_USER_BOOK_RATING,
            {"id": user_book_id, "rating": rating},
        )
    )
    return _require_id(data, "update_user_book")


def update_user_book_review(source: DataSource, user_book_id: int, review: str, *, spoilers: bool = False) -> int:
    data = source.query(
        GraphQLRequest(
            "UpdateUserBookReview",
            UPDATE_USER_BOOK_REVIEW,
            {"id": user_book_id, "review": review, "spoilers": spoilers},
        )
    )
    return _require_id(data, "update_user_book")


def delete_user_book(source: DataSource, user_book_id: int) -> int:
    """Remove a book from the library, along with its reads and rating."""
    data = source.query(GraphQLRequest("DeleteUserBook", DELETE_USER_BOOK, {"id": user_book_id}))
    return _require_id(data, "delete_user_book")


def update_user_book_read(
    source: DataSource,
    read_id: int,
    progress_pages: int | None,
    *,
    started_at: str | None = None,
    finished_at: str | None = None,
) -> int:
    """Set the page reached on a read-through, then its dates when either is given.

    Dates are ``YYYY-MM-DD`` strings.
    """
    if progress_pages is not None and progress_pages < 0:
        msg = f"progress_pages must not be negative, got {progress_pages}"
        raise ValueError(msg)
    data = source.query(
        GraphQLRequest(
            "UpdateUserBookRead",
            UPDATE_USER_BOOK_READ,
            {"id": read_id, "progressPages": progress_pages},
        )
    )
    ident = _require_id(data, "update_user_book_read")
    if started_at is None and finished_at is None:
        return ident
    data = source.query(
        GraphQLRequest(
            "UpdateUserBookReadDates",
            UPDATE_USER_BOOK_READ_DATES,
            {"id": read_id, "startedAt": started_at, "finishedAt": finished_at},
        )
    )
    return _require_id(data, "update_user_book_read")


def insert_list(
    source: DataSource,
    name: str,
    description: str = "",
    privacy: Privacy = Privacy.PUBLIC,
) -> int:
    data = source.query(
        GraphQLRequest(
            "InsertList",
            INSERT_LIST,
            {"name": name, "description": description, "privacySettingId": int(privacy)},
        )
    )
    return _require_id(data, "insert_list")


def update_list_privacy(source: DataSource, list_id: int, privacy: Privacy) -> int:
    data = source.query(
        GraphQLRequest(
            "UpdateListPrivacy",
            UPDATE_LIST_PRIVACY,
            {"id": list_id, "privacySettingId": int(privacy)},
        )
    )
    return _require_id(data, "update_list")


def delete_list(source: DataSource, list_id: int) -> None:
    data = source.query(GraphQLRequest("DeleteList", DELETE_LIST, {"id": list_id}))
    node = data.get("delete_list") or {}
    if not node.get("success"):
        raise ServerError(f"Could not delete list {list_id}")


def insert_list_book(source: DataSource, list_id: int, book_id: int, position: int = 0) -> int:
    data = source.query(
        GraphQLRequest(
            "InsertListBook",
            INSERT_LIST_BOOK,
            {"listId": list_id, "bookId": book_id, "position": position},
        )
    )
    return _require_id(data, "insert_list_book")


def delete_list_book(source: DataSource, list_book_id: int) -> int:
    data = source.query(GraphQLRequest("DeleteListBook", DELETE_LIST_BOOK, {"id": list_book_id}))
    return _require_id(data, "delete_list_book")


def insert_reading_journal(
    source: DataSource,
    book_id: int,
    entry: str,
    *,
    event: str = "note",
    privacy: Privacy = Privacy.PUBLIC,
) -> int:
    data = source.query(
        GraphQLRequest(
            "InsertReadingJournal",
            INSERT_READING_JOURNAL,
            {
                "bookId": book_id,
                "event": event,
                "entry": entry,
                "privacySettingId": int(privacy),
            },
        )
    )
    return _require_id(data, "insert_reading_journal")


def delete_reading_journal(source: DataSource, journal_id: int) -> int:
    data = source.query(
        GraphQLRequest("DeleteReadingJournal", DELETE_READING_JOURNAL, {"id": journal_id})
    )
    return _require_id(data, "delete_reading_journal")


def _require_id(data: dict[str, Any], field: str) -> int:
    node = data.get(field) or {}
    ident = node.get("id")
    if ident is None:
        reason = node.get("error") or node.get("errors") or "no id returned"
        if isinstance(reason, list):
            reason = "; ".join(str(r) for r in reason) or "no id returned"
        raise ServerError(f"{field}: {reason}")
    return int(ident)
