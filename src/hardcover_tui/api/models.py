"""Domain models returned by queries.

Parsed straight from GraphQL ``data`` payloads with ``model_validate``.
Unknown fields are ignored so new API fields never break parsing.
"""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class ReadingStatus(IntEnum):
    WANT_TO_READ = 1
    CURRENTLY_READING = 2
    READ = 3
    PAUSED = 4
    DID_NOT_FINISH = 5
    IGNORED = 6

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @classmethod
    def label_for(cls, value: int) -> str:
        try:
            return cls(value).label
        except ValueError:
            return "Unknown"


_STATUS_LABELS = {
    ReadingStatus.WANT_TO_READ: "Want to Read",
    ReadingStatus.CURRENTLY_READING: "Currently Reading",
    ReadingStatus.READ: "Read",
    ReadingStatus.PAUSED: "Paused",
    ReadingStatus.DID_NOT_FINISH: "Did Not Finish",
    ReadingStatus.IGNORED: "Ignored",
}


class Privacy(IntEnum):
    PUBLIC = 1
    FOLLOWERS = 2
    PRIVATE = 3

    @property
    def label(self) -> str:
        return {1: "Public", 2: "Followers Only", 3: "Private"}[self.value]

    @classmethod
    def label_for(cls, value: int) -> str:
        try:
            return cls(value).label
        except ValueError:
            return "Unknown"


# Tag category ids used by the Hardcover API.
TAG_CATEGORY_GENRE = 1
TAG_CATEGORY_CONTENT_WARNING = 3
TAG_CATEGORY_MOOD = 5


class _Frozen(BaseModel):
    model_config = {"frozen": True}


class Image(_Frozen):
    url: str = ""


class Author(_Frozen):
    id: int = 0
    name: str = ""
    slug: str | None = None


class Contribution(_Frozen):
    author: Author


class Book(_Frozen):
    id: int
    title: str = ""
    subtitle: str | None = None
    description: str | None = None
    pages: int | None = None
    rating: float | None = None
    ratings_count: int = 0
    reviews_count: int = 0
    users_count: int = 0
    release_year: int | None = None
    slug: str | None = None
    audio_seconds: int | None = None
    image: Image | None = None
    contributions: list[Contribution] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    has_audiobook: bool = False
    has_ebook: bool = False

    @property
    def authors(self) -> str:
        names = [c.author.name for c in self.contributions if c.author.name]
        return ", ".join(names) if names else "Unknown"

    @property
    def format_indicator(self) -> str:
        parts = []
        if self.pages:
            parts.append("P")
        if self.has_ebook:
            parts.append("E")
        if self.has_audiobook:
            parts.append("A")
        return "/".join(parts) or "-"


class UserBookRead(_Frozen):
    id: int
    started_at: str | None = None
    finished_at: str | None = None
    progress_pages: int | None = None
    progress_seconds: int | None = None
    edition_id: int | None = None


class UserBook(_Frozen):
    id: int
    book_id: int
    status_id: int
    rating: float | None = None
    review: str | None = None
    review_has_spoilers: bool | None = None
    has_review: bool = False
    date_added: str | None = None
    read_count: int = 0
    owned: bool = False
    starred: bool = False
    likes_count: int = 0
    privacy_setting_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    book: Book | None = None
    user_book_reads: list[UserBookRead] = Field(default_factory=list)

    @property
    def status_label(self) -> str:
        return ReadingStatus.label_for(self.status_id)


class User(_Frozen):
    id: int
    username: str
    name: str | None = None
    bio: str | None = None
    location: str | None = None
    books_count: int = 0
    followers_count: int = 0
    followed_users_count: int = 0
    pro: bool = False
    image: Image | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.username


class BookList(_Frozen):
    id: int
    name: str
    description: str | None = None
    books_count: int = 0
    likes_count: int = 0
    public: bool = True
    ranked: bool = False
    privacy_setting_id: int = Privacy.PUBLIC
    slug: str | None = None
    user_id: int | None = None
    updated_at: str | None = None

    @property
    def privacy_label(self) -> str:
        return Privacy.label_for(self.privacy_setting_id)


class ListBook(_Frozen):
    id: int
    list_id: int
    book_id: int
    position: int | None = None
    date_added: str | None = None
    book: Book | None = None


class ReviewUser(_Frozen):
    id: int = 0
    username: str = ""
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.username


class BookReview(_Frozen):
    id: int
    rating: float | None = None
    review: str | None = None
    review_has_spoilers: bool = False
    likes_count: int = 0
    created_at: str | None = None
    user: ReviewUser = Field(default_factory=ReviewUser)


class ReadingJournal(_Frozen):
    id: int
    event: str = "note"
    entry: str | None = None
    action_at: str | None = None
    book_id: int | None = None
    privacy_setting_id: int = Privacy.PUBLIC
    likes_count: int = 0
    created_at: str | None = None
    book: Book | None = None


ACTIVITY_STATUS_VERBS = {
    ReadingStatus.WANT_TO_READ: "Wants to read",
    ReadingStatus.CURRENTLY_READING: "Started reading",
    ReadingStatus.READ: "Finished",
    ReadingStatus.PAUSED: "Paused",
    ReadingStatus.DID_NOT_FINISH: "Did not finish",
    ReadingStatus.IGNORED: "Removed",
}


class Activity(_Frozen):
    """One entry of an activity feed; ``data`` is the event's raw JSON payload."""

    id: int
    event: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    book_id: int | None = None
    likes_count: int = 0
    privacy_setting_id: int | None = None
    created_at: str | None = None
    book: Book | None = None
    user: ReviewUser | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _decode_data(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return {}
        return value if isinstance(value, dict) else {}

    @property
    def summary(self) -> str:
        """Short sentence describing what happened, without the book title."""
        if self.event == "UserBookActivity":
            return _describe_user_book(self.data.get("userBook"))
        if self.event == "GoalActivity":
            goal = self.data.get("goal")
            if not isinstance(goal, dict):
                return "Updated reading goal"
            if float(goal.get("percentComplete") or 0) >= 1.0:
                return "Completed reading goal"
            if goal.get("description"):
                return f"Set goal: {goal['description']}"
            return "Set a reading goal"
        if self.event == "ListActivity":
            book_list = self.data.get("list")
            if isinstance(book_list, dict) and book_list.get("name"):
                return f"Updated list: {book_list['name']}"
            return "Updated a list"
        if self.event == "PromptActivity":
            prompt = self.data.get("prompt")
            if isinstance(prompt, dict) and prompt.get("question"):
                return f"Answered: {prompt['question']}"
            return "Answered a prompt"
        label = self.event.replace("_", " ")
        return label[:1].upper() + label[1:]

    def url(self, username: str) -> str:
        """Public page of this activity; *username* is used when the feed omits the author."""
        author = self.user.username if self.user and self.user.username else username
        return f"https://hardcover.app/@{author}/activity/{self.id}"


def _describe_user_book(data: Any) -> str:
    if not isinstance(data, dict):
        return "Updated"
    if data.get("review"):
        return "Reviewed"
    if data.get("rating"):
        return f"Rated {data['rating']}"
    status = data.get("statusId")
    if status is not None:
        try:
            return ACTIVITY_STATUS_VERBS[ReadingStatus(int(status))]
        except (TypeError, ValueError):
            return "Updated"
    return "Updated"


class BookTags(_Frozen):
    genres: list[str] = Field(default_factory=list)
    moods: list[str] = Field(default_factory=list)
    content_warnings: list[str] = Field(default_factory=list)
