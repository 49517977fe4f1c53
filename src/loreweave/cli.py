#!/usr/bin/env python3
"""
lw: CLI for the loreweave cross-referencing engine

Usage:
    lw slug "Dragon's Lair"          # Normalize a title
    lw links castle-black            # Resolved and broken references
    lw backlinks castle-black        # Who references this document
    lw detect castle-black --apply   # Turn mentions of known titles into links
    lw history castle-black          # Stored revisions
    lw recent                        # Newest revisions across the KB
    lw diff castle-black --from ID   # Line diff against the live document
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

import click

from . import __version__ as LOREWEAVE_VERSION
from .config import RECENT_CHANGES_LIMIT, LoreweaveError

T = TypeVar("T")


def output(data, as_json: bool = False):
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def format_table(rows: list[dict], columns: list[str], max_widths: dict | None = None) -> str:
    """Format rows as a simple table."""
    if not rows:
        return ""

    max_widths = max_widths or {}

    def cell(row: dict, col: str) -> str:
        val = str(row.get(col, ""))
        limit = max_widths.get(col, 50)
        if len(val) > limit:
            val = val[: limit - 3] + "..."
        return val

    widths = {col: len(col) for col in columns}
    for row in rows:
        for col in columns:
            widths[col] = max(widths[col], len(cell(row, col)))

    header = "  ".join(col.upper().ljust(widths[col]) for col in columns)
    separator = "  ".join("-" * widths[col] for col in columns)

    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(cell(row, col).ljust(widths[col]) for col in columns))

    return "\n".join(lines).rstrip()


def _fail(error: Exception) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _run(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call a core operation, reporting adapter and I/O errors as CLI errors."""
    try:
        return fn(*args, **kwargs)
    except (LoreweaveError, OSError) as e:
        _fail(e)


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=LOREWEAVE_VERSION, prog_name="lw")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="LOREWEAVE_QUIET",
    help="Suppress warnings, show only errors and essential output",
)
@click.pass_context
def cli(ctx: click.Context, quiet: bool):
    """lw: cross-reference and revision tool for a markdown knowledge base.

    Documents are markdown files with a YAML `title` under LOREWEAVE_KB_ROOT
    (or ./kb). References are written [[Title]] or [[Title|label]].

    \b
    References:
      lw links PATH            # Resolved and broken references
      lw render PATH           # Body with references rendered as HTML
      lw backlinks PATH        # Documents referencing PATH
      lw broken                # Every broken reference in the KB
      lw detect PATH [--apply] # Suggest references for known titles

    \b
    Revisions:
      lw snapshot PATH -m "why"
      lw history PATH
      lw recent [-n N]
      lw diff PATH --from ID [--to ID|current]
      lw revert PATH ID
    """
    from ._logging import configure_logging, set_quiet_mode

    configure_logging()

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet

    if quiet:
        set_quiet_mode(True)


# ─────────────────────────────────────────────────────────────────────────────
# Reference Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("title")
def slug(title: str):
    """Print the slug a title normalizes to.

    \b
    Examples:
      lw slug "Dragon's Lair!"     # dragons-lair
    """
    from .slugs import normalize

    result = normalize(title)
    if not result:
        _fail(ValueError(f"Title has no valid slug: {title!r}"))
    click.echo(result)


@cli.command()
@click.argument("path")
@click.option("--broken-only", is_flag=True, help="Show only broken references")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def links(path: str, broken_only: bool, as_json: bool):
    """List the references in a document and whether they resolve.

    \b
    Examples:
      lw links castle-black
      lw links lore/castle-black.md --broken-only
    """
    from .core import links as core_links

    annotated = _run(core_links, path)
    refs = annotated.broken if broken_only else annotated.references

    if as_json:
        output([r.model_dump() for r in refs], as_json=True)
        return

    if not refs:
        click.echo("No references found.")
        return

    rows = [
        {"target": r.target_title, "label": r.display_label, "slug": r.slug, "status": r.status}
        for r in refs
    ]
    click.echo(format_table(rows, ["target", "label", "slug", "status"]))


@cli.command()
@click.argument("path")
def render(path: str):
    """Print a document body with references rendered as HTML links.

    Broken references carry the wiki-link-broken class.
    """
    from .core import links as core_links

    annotated = _run(core_links, path)
    click.echo(annotated.render_html())


@cli.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def backlinks(path: str, as_json: bool):
    """Find documents that reference this one.

    \b
    Examples:
      lw backlinks castle-black
    """
    from .core import backlinks as core_backlinks

    result = sorted(_run(core_backlinks, path), key=lambda b: b.title.lower())

    if as_json:
        output([b.model_dump() for b in result], as_json=True)
        return

    if not result:
        click.echo("No backlinks found.")
        return

    click.echo(format_table([b.model_dump() for b in result], ["id", "title", "slug"]))


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def broken(as_json: bool):
    """List every reference in the KB whose target does not exist."""
    from .core import broken_links

    result = _run(broken_links)

    if as_json:
        output([b.model_dump() for b in result], as_json=True)
        return

    if not result:
        click.echo("No broken references.")
        return

    rows = [{"source": b.source_id, "target": b.target_title, "slug": b.slug} for b in result]
    click.echo(format_table(rows, ["source", "target", "slug"]))


@cli.command()
@click.argument("path")
@click.option("--apply", "apply_", is_flag=True, help="Write detected references into the document")
@click.option(
    "--only",
    multiple=True,
    help="Accept only suggestions for this title (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def detect(path: str, apply_: bool, only: tuple[str, ...], as_json: bool):
    """Suggest references for known titles mentioned in a document.

    Existing references and headings are never touched. Longer titles win
    over titles they contain. With --apply the document is snapshotted into
    the revision store before it is rewritten.

    \b
    Examples:
      lw detect castle-black
      lw detect castle-black --only "Night's Watch" --apply
    """
    from .core import suggest_links

    document, spans = _run(suggest_links, path, only=list(only), apply=apply_)

    if as_json:
        output(
            {
                "document": document.id,
                "applied": apply_ and bool(spans),
                "spans": [s.model_dump() for s in spans],
            },
            as_json=True,
        )
        return

    if not spans:
        click.echo("No link suggestions found.")
        return

    verb = "Applied" if apply_ else "Suggested"
    click.echo(f"{verb} references for {document.id}:\n")
    for span in spans:
        click.echo(f"  {span.start:>6}-{span.end:<6} {span.matched_title}")


# ─────────────────────────────────────────────────────────────────────────────
# Revision Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("path")
@click.option("--message", "-m", "summary", help="Summary stored with the revision")
def snapshot(path: str, summary: str | None):
    """Store the current state of a document as a revision."""
    from .core import snapshot_document

    revision = _run(snapshot_document, path, summary=summary)
    click.echo(revision.id)


@cli.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def history(path: str, as_json: bool):
    """List stored revisions of a document, newest first."""
    from .core import history as core_history

    revisions = _run(core_history, path)

    if as_json:
        output([r.model_dump(exclude={"body"}) for r in revisions], as_json=True)
        return

    if not revisions:
        click.echo("No revisions found.")
        return

    rows = [
        {
            "id": r.id,
            "created": r.created.strftime("%Y-%m-%d %H:%M:%S"),
            "title": r.title,
            "summary": r.summary or "",
        }
        for r in revisions
    ]
    click.echo(format_table(rows, ["id", "created", "title", "summary"], {"id": 32}))


@cli.command()
@click.option(
    "--limit",
    "-n",
    default=RECENT_CHANGES_LIMIT,
    show_default=True,
    type=click.IntRange(min=1),
    help="Maximum number of revisions",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recent(limit: int, as_json: bool):
    """List the newest revisions across all documents.

    \b
    Examples:
      lw recent
      lw recent -n 10 --json
    """
    from .core import recent_changes

    revisions = _run(recent_changes, limit)

    if as_json:
        output([r.model_dump(exclude={"body"}) for r in revisions], as_json=True)
        return

    if not revisions:
        click.echo("No recent changes.")
        return

    rows = [
        {
            "created": r.created.strftime("%Y-%m-%d %H:%M:%S"),
            "document": r.document_id,
            "title": r.title,
            "summary": r.summary or "",
        }
        for r in revisions
    ]
    click.echo(format_table(rows, ["created", "document", "title", "summary"]))


@cli.command()
@click.argument("path")
@click.option("--from", "from_revision", required=True, help="Revision id or 'current'")
@click.option("--to", "to_revision", default="current", show_default=True, help="Revision id or 'current'")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def diff(path: str, from_revision: str, to_revision: str, as_json: bool):
    """Show a line diff between two states of a document.

    \b
    Examples:
      lw diff castle-black --from 3f2a...
      lw diff castle-black --from 3f2a... --to 9c1b...
    """
    from .core import diff_revisions
    from .revisions import format_diff, has_changes

    lines = _run(diff_revisions, path, from_revision, to_revision)

    if as_json:
        output([line.model_dump() for line in lines], as_json=True)
        return

    if not has_changes(lines):
        click.echo("No differences found.")
        return

    click.echo(format_diff(lines))


@cli.command()
@click.argument("path")
@click.argument("revision_id")
def revert(path: str, revision_id: str):
    """Revert a document to a stored revision.

    The current state is stored as a revision first, so a revert can itself
    be reverted.
    """
    from .core import revert_document

    document = _run(revert_document, path, revision_id)
    click.echo(f"Reverted {document.id} to revision {revision_id}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
