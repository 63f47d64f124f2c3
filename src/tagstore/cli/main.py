"""Root CLI group — entry point for all tagstore commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from tagstore import __version__
from tagstore.output.formatter import OutputFormatter


class TagStoreContext:
    """Shared context passed through Click commands."""

    def __init__(self, json_mode: bool = False, db_path: Path | None = None) -> None:
        self.json_mode = json_mode
        self.db_path = db_path
        self.formatter = OutputFormatter(json_mode=json_mode)
        self._db = None
        self._config: dict[str, Any] | None = None

    @property
    def config(self) -> dict[str, Any]:
        if self._config is None:
            from tagstore.core.config import load_config

            self._config = load_config()
        return self._config

    def get_db(self):
        """Lazy-load and return the database connection."""
        if self._db is None:
            from tagstore.core.database import DatabaseConnection

            self._db = DatabaseConnection(db_path=self.db_path)
            self._db.connect()
        return self._db

    def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            self._db.close()
            self._db = None


pass_context = click.make_pass_decorator(TagStoreContext, ensure=True)


@click.group()
@click.option("--json", "json_mode", is_flag=True, help="Output JSON for agent consumption.")
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), help="Database file to use.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(__version__, prog_name="tagstore")
@click.pass_context
def cli(ctx: click.Context, json_mode: bool, db_path: Path | None, verbose: bool) -> None:
    """tagstore — query the tag/article relation table."""
    from tagstore.core.log import configure_logging

    obj = TagStoreContext(json_mode=json_mode, db_path=db_path)
    ctx.obj = obj
    ctx.call_on_close(obj.close)
    configure_logging("DEBUG" if verbose else obj.config.get("logging", {}).get("level", "WARNING"))


# ── Register subcommands ──────────────────────────────────────────

from tagstore.cli.relations import by_article, by_tag, init_cmd, link, unlink  # noqa: E402

cli.add_command(init_cmd, "init")
cli.add_command(link)
cli.add_command(unlink)
cli.add_command(by_article)
cli.add_command(by_tag)
