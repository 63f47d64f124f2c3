"""Tag-article relation model and its read-only store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from tagstore.core.exceptions import ValidationError
from tagstore.models.base import TagStoreModel
from tagstore.repository.protocol import Repository
from tagstore.repository.query import FilterOperator, PropertyFilter, Query, SortDirection

TAG_ARTICLE_TABLE = "tag_article"


class TagArticle(TagStoreModel):
    """One tag attached to one article."""

    tag_id: str = Field(min_length=1)
    article_id: str = Field(min_length=1)

    @classmethod
    def from_row(cls, row: Any) -> "TagArticle":
        return super().from_row(row)  # type: ignore[return-value]


class TagArticlePage(BaseModel):
    """A page of relations for a tag, newest article first."""

    relations: list[TagArticle] = Field(default_factory=list)
    page_count: int = 0
    record_count: int = 0
    page_num: int = 1
    page_size: int = 1


class TagArticleStore:
    """Read access to the tag-article relation table.

    Rows are written elsewhere (see ``SqliteRepository.add``); this class
    only queries them.
    """

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def get_by_article_id(self, article_id: str) -> list[TagArticle]:
        """Return every relation for the article, in no particular order.

        An article without tags yields an empty list.
        """
        if not article_id:
            raise ValidationError("article_id must not be empty")
        query = Query().set_filter(PropertyFilter("article_id", FilterOperator.EQUAL, article_id))
        result = self.repository.get(query)
        return [TagArticle.from_row(r) for r in result.results]

    def get_by_tag_id(self, tag_id: str, page_num: int, page_size: int) -> TagArticlePage:
        """Return one page of relations for the tag, ordered by article id descending."""
        if not tag_id:
            raise ValidationError("tag_id must not be empty")
        query = (
            Query()
            .set_filter(PropertyFilter("tag_id", FilterOperator.EQUAL, tag_id))
            .add_sort("article_id", SortDirection.DESCENDING)
            .set_current_page_num(page_num)
            .set_page_size(page_size)
            .set_page_count(True)
        )
        result = self.repository.get(query)
        return TagArticlePage(
            relations=[TagArticle.from_row(r) for r in result.results],
            page_count=result.pagination.page_count,
            record_count=result.pagination.record_count,
            page_num=page_num,
            page_size=page_size,
        )
