"""Tag-article relation CLI commands."""

from __future__ import annotations

from typing import NoReturn

import click
import pydantic

from tagstore.cli.main import TagStoreContext, pass_context
from tagstore.core.exceptions import TagStoreError

_RELATION_COLUMNS = [("ID", "dim"), ("Tag", "cyan"), ("Article", "bold")]


def _fail(ctx: TagStoreContext, error: Exception) -> NoReturn:
    ctx.formatter.error(str(error))
    raise SystemExit(1)


@click.command("init")
@pass_context
def init_cmd(ctx: TagStoreContext) -> None:
    """Create or migrate the database schema."""
    from tagstore.core.migrations import initialize_database

    try:
        version = initialize_database(ctx.get_db())
    except TagStoreError as e:
        _fail(ctx, e)

    if ctx.json_mode:
        ctx.formatter.json({"schema_version": version})
    else:
        ctx.formatter.success(f"Database ready (schema v{version})")


@click.command()
@click.argument("tag_id")
@click.argument("article_id")
@pass_context
def link(ctx: TagStoreContext, tag_id: str, article_id: str) -> None:
    """Attach TAG_ID to ARTICLE_ID."""
    from tagstore.models.tag_article import TAG_ARTICLE_TABLE, TagArticle
    from tagstore.repository.sqlite import SqliteRepository

    try:
        relation = TagArticle(tag_id=tag_id, article_id=article_id)
        SqliteRepository(ctx.get_db(), TAG_ARTICLE_TABLE).add(relation.to_row())
    except (TagStoreError, pydantic.ValidationError) as e:
        _fail(ctx, e)

    if ctx.json_mode:
        ctx.formatter.json(relation.model_dump())
    else:
        ctx.formatter.success(f"Linked tag {tag_id} to article {article_id} ({relation.id})")


@click.command()
@click.argument("relation_id")
@pass_context
def unlink(ctx: TagStoreContext, relation_id: str) -> None:
    """Delete the relation RELATION_ID."""
    from tagstore.models.tag_article import TAG_ARTICLE_TABLE
    from tagstore.repository.sqlite import SqliteRepository

    try:
        repo = SqliteRepository(ctx.get_db(), TAG_ARTICLE_TABLE)
        existed = repo.has(relation_id)
        repo.remove(relation_id)
    except TagStoreError as e:
        _fail(ctx, e)

    if ctx.json_mode:
        ctx.formatter.json({"id": relation_id, "removed": existed})
    elif existed:
        ctx.formatter.success(f"Removed relation {relation_id}")
    else:
        ctx.formatter.print(f"No relation with id {relation_id}")


@click.command("by-article")
@click.argument("article_id")
@pass_context
def by_article(ctx: TagStoreContext, article_id: str) -> None:
    """List the tags attached to ARTICLE_ID."""
    from tagstore.models.tag_article import TAG_ARTICLE_TABLE, TagArticleStore
    from tagstore.repository.sqlite import SqliteRepository

    try:
        store = TagArticleStore(SqliteRepository(ctx.get_db(), TAG_ARTICLE_TABLE))
        relations = store.get_by_article_id(article_id)
    except TagStoreError as e:
        _fail(ctx, e)

    ctx.formatter.table(
        title=f"Tags on article {article_id}",
        columns=_RELATION_COLUMNS,
        rows=[[r.id, r.tag_id, r.article_id] for r in relations],
        data_for_json=[r.model_dump() for r in relations],
    )


@click.command("by-tag")
@click.argument("tag_id")
@click.option("--page", "page_num", type=int, default=1, show_default=True, help="Page number (1-based).")
@click.option("--page-size", type=int, default=None, help="Rows per page (defaults to config query.default_page_size).")
@pass_context
def by_tag(ctx: TagStoreContext, tag_id: str, page_num: int, page_size: int | None) -> None:
    """List articles carrying TAG_ID, newest article id first."""
    from tagstore.models.tag_article import TAG_ARTICLE_TABLE, TagArticleStore
    from tagstore.repository.sqlite import SqliteRepository

    try:
        if page_size is None:
            page_size = int(ctx.config.get("query", {}).get("default_page_size", 20))
        store = TagArticleStore(SqliteRepository(ctx.get_db(), TAG_ARTICLE_TABLE))
        page = store.get_by_tag_id(tag_id, page_num, page_size)
    except TagStoreError as e:
        _fail(ctx, e)

    ctx.formatter.table(
        title=f"Articles tagged {tag_id} (page {page.page_num}/{page.page_count})",
        columns=_RELATION_COLUMNS,
        rows=[[r.id, r.tag_id, r.article_id] for r in page.relations],
        data_for_json=page.model_dump(),
    )
