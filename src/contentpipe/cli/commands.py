"""CLI command implementations"""

import logging
import uuid
from contextlib import closing
from pathlib import Path
from typing import Annotated, Optional

import typer

from contentpipe.config import Settings, load_config
from contentpipe.core.analysis import translate_html
from contentpipe.core.errors import ContentPipeError, ValidationError
from contentpipe.core.models import UPLOAD_TYPES, PlaceholderPolicy
from contentpipe.core.pipeline import build_context, cleanup_content_dir, run_import
from contentpipe.core.placeholders.engine import process_placeholders
from contentpipe.crud.artifacts import get_artifact, get_tags, list_artifacts
from contentpipe.crud.database import init_db, make_engine, reset_db, session_scope
from contentpipe.crud.sql_repo import SQLArtifactRepo
from contentpipe.services.rewriter import AnthropicRewriter


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def import_cmd(
    upload_type: Annotated[str, typer.Argument(help=f"One of: {', '.join(UPLOAD_TYPES)}")],
    source: Annotated[Path, typer.Argument(help="Archive, HTML file or video to import", exists=True, dir_okay=False)],
    content_id: Annotated[Optional[str], typer.Option("--id", help="Content id; generated when omitted")] = None,
    from_name: Annotated[Optional[str], typer.Option("--from-name", help="Sender display name for email placeholders")] = None,
    content_dir: Annotated[Optional[str], typer.Option("--content-dir", help="Local content root")] = None,
    storage: Annotated[Optional[str], typer.Option("--storage", help="local or s3")] = None,
    no_ai: Annotated[bool, typer.Option("--no-ai", help="Skip rewriter-backed tagging and cue analysis")] = False,
    keep_failed: Annotated[bool, typer.Option("--keep-failed", help="Keep the content directory when an import fails")] = False,
    ):
    """Import one content item and record its artifact."""
    settings = _settings(overrides={"content_dir": content_dir, "storage": storage})
    content_id = content_id or uuid.uuid4().hex
    engine = make_engine(settings.db_url)
    init_db(engine)

    try:
        with session_scope(engine) as session:
            ctx = build_context(settings, SQLArtifactRepo(session), with_rewriter=not no_ai)
            with closing(ctx.fetcher):
                result = run_import(ctx, content_id, upload_type, source, from_name=from_name)
    except ValidationError as e:
        _fail(str(e))
    except (ContentPipeError, ValueError, OSError) as e:
        if not keep_failed:
            cleanup_content_dir(settings, content_id)
        _fail("Import failed", e)

    typer.echo(f"Imported {result.content_id} ({result.content_type.value}/{result.subtype})")
    typer.echo(f"  url: {result.content_url}")
    typer.echo(f"  scorable: {result.scorable}")
    if result.tags:
        typer.echo(f"  tags: {', '.join(result.tags)}")
    if result.cues:
        typer.echo(f"  cues: {', '.join(result.cues)}")
    if result.difficulty:
        typer.echo(f"  difficulty: {result.difficulty.value}")


def check_cmd(
    policy: Annotated[PlaceholderPolicy, typer.Argument(help="Placeholder policy to apply")],
    path: Annotated[Path, typer.Argument(help="HTML file to check", exists=True, dir_okay=False)],
    from_name: Annotated[Optional[str], typer.Option("--from-name", help="Sender display name for email placeholders")] = None,
    out: Annotated[Optional[Path], typer.Option("--out", help="Write the processed HTML here")] = None,
    ):
    """Dry-run a placeholder policy over an HTML file."""
    settings = _settings()
    try:
        result = process_placeholders(
            path.read_text(encoding="utf-8"), policy, {"from_name": from_name}, settings.placeholder_rules_file,
        )
    except ValueError as e:
        _fail(str(e))
    if not result.success:
        _fail(result.error)

    for label, names in result.processed.model_dump().items():
        if names:
            typer.echo(f"  {label}: {', '.join(names)}")
    if out:
        out.write_text(result.html, encoding="utf-8")
        typer.echo(f"Wrote {out}")
    typer.echo("Placeholders OK")


def tags_cmd(
    content_id: Annotated[Optional[str], typer.Argument(help="Content id; lists all artifacts when omitted")] = None,
    ):
    """Show stored tags for one artifact, or list all artifacts."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    with session_scope(engine) as session:
        if content_id is None:
            artifacts = list_artifacts(session)
            if not artifacts:
                typer.echo("No content found in database.")
                raise typer.Exit(1)
            for a in artifacts:
                typer.echo(f"{a.id}\t{a.content_type}\t{a.tags or ''}")
            return
        if get_artifact(session, content_id) is None:
            _fail(f"No content with id {content_id}")
        for row in get_tags(session, content_id):
            typer.echo(f"{row.tag_name}\t{row.tag_type.value}")


def translate_cmd(
    path: Annotated[Path, typer.Argument(help="HTML file to translate", exists=True, dir_okay=False)],
    target: Annotated[str, typer.Option("--to", help="Target language code, e.g. es, fr, ar")],
    source: Annotated[str, typer.Option("--from", help="Source language code")] = "en",
    out: Annotated[Optional[Path], typer.Option("--out", help="Output file; defaults to <name>.<lang>.html")] = None,
    ):
    """Translate an HTML file with scripts, links and URLs shielded from the rewriter."""
    settings = _settings()
    rewriter = AnthropicRewriter(settings.anthropic_api_key, settings.anthropic_model, settings.anthropic_max_tokens)
    try:
        translated = translate_html(
            path.read_text(encoding="utf-8"), rewriter, target, source, settings.max_content_size,
        )
    except ContentPipeError as e:
        _fail("Translation failed", e)
    out = out or path.with_name(f"{path.stem}.{target}{path.suffix}")
    out.write_text(translated, encoding="utf-8")
    typer.echo(f"Translated {path} -> {out}")
