"""Import orchestration: package, email, raw HTML and video imports end to end"""

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from contentpipe.config import Settings
from contentpipe.core.analysis import analyze_html, keyword_tags, process_in_chunks, tag_phishing_email
from contentpipe.core.assets.absolutize import convert_relative_urls_to_absolute
from contentpipe.core.assets.localize import AssetLocalizer
from contentpipe.core.assets.paths import is_within
from contentpipe.core.errors import ExternalServiceError, ValidationError
from contentpipe.core.inject import inject_base_tag, inject_tracking, tracking_script
from contentpipe.core.models import UPLOAD_TYPES, ContentType, Difficulty, ImportResult, PlaceholderPolicy
from contentpipe.core.package.extract import extract_archive
from contentpipe.core.package.scoring import detect_scorable, normalize_record_test_calls
from contentpipe.core.placeholders.engine import require_placeholders
from contentpipe.crud.models import ContentArtifact, TagTypeEnum
from contentpipe.crud.repo import ArtifactRepo
from contentpipe.services.fetch import Fetcher, HttpFetcher
from contentpipe.services.rewriter import AnthropicRewriter, ContentRewriter
from contentpipe.services.storage import ContentStore, LocalStore, S3Store


logger = logging.getLogger(__name__)

RAW_HTML_POLICIES = {"training": PlaceholderPolicy.education, "landing": PlaceholderPolicy.landing}

_CONTENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@dataclass
class ImportContext:
    """Collaborators for one import job; nothing here is shared across jobs except by the caller."""
    settings: Settings
    fetcher:  Fetcher
    store:    ContentStore
    repo:     ArtifactRepo
    rewriter: Optional[ContentRewriter] = None

    def content_root(self, content_id: str) -> Path:
        return check_content_id(self.settings.content_dir, content_id)

    def public_prefix(self, content_id: str) -> str:
        return self.store.base_url(content_id).rstrip("/")

    def localizer(self, content_id: str) -> AssetLocalizer:
        return AssetLocalizer(self.fetcher, self.public_prefix(content_id), self.settings.legacy_origin)


def build_store(settings: Settings) -> ContentStore:
    if settings.storage == "s3":
        if not settings.s3_bucket:
            raise ValueError("storage is 's3' but s3_bucket is not set")
        return S3Store(settings.s3_bucket, settings.s3_prefix, settings.s3_region, settings.s3_cdn_url)
    return LocalStore(settings.content_dir, settings.base_path)


def build_context(settings: Settings, repo: ArtifactRepo, with_rewriter: bool = True) -> ImportContext:
    """Default collaborators: requests fetcher, local/S3 store, Anthropic rewriter."""
    rewriter = None
    if with_rewriter:
        rewriter = AnthropicRewriter(settings.anthropic_api_key, settings.anthropic_model, settings.anthropic_max_tokens)
    return ImportContext(
        settings=settings,
        fetcher=HttpFetcher(settings.download_timeout, settings.download_tries),
        store=build_store(settings),
        repo=repo,
        rewriter=rewriter,
    )


def check_content_id(content_dir: Path | str, content_id: str) -> Path:
    """Content root for an id; ids are a single safe path segment under content_dir."""
    root = Path(content_dir) / content_id
    if not _CONTENT_ID_RE.match(content_id) or not is_within(root, Path(content_dir)):
        raise ValidationError(f"Invalid content id: {content_id!r}", items=[content_id])
    return root


def cleanup_content_dir(settings: Settings, content_id: str) -> bool:
    """Remove what a failed import left behind; True if something was removed."""
    root = check_content_id(settings.content_dir, content_id)
    if not root.exists():
        return False
    shutil.rmtree(root)
    logger.info("Removed content directory %s", root)
    return True


# --- shared steps ---

def _topic_tags(ctx: ImportContext, html: str, use_model: bool) -> tuple[str, list[str]]:
    """(html, tags): model analysis or tagging when allowed and small enough, else title keywords."""
    s = ctx.settings
    if not use_model or ctx.rewriter is None or len(html) > s.max_ai_size:
        if use_model:
            logger.info("Skipping model analysis (%d chars); using title keywords", len(html))
        return html, keyword_tags(html)
    if s.tag_mode == "rewrite":
        return process_in_chunks(html, ctx.rewriter, s.chunk_size, s.max_content_size, s.truncation_ratio)
    return html, analyze_html(html, ctx.rewriter)


def _deliverable(ctx: ImportContext, content_id: str, html: str) -> str:
    """Entry document with base tag and tracker injected."""
    html = inject_base_tag(html, ctx.store.base_url(content_id))
    snippet = tracking_script(ctx.settings.base_path, url_parsing=ctx.store.is_remote)
    return inject_tracking(html, snippet)


def _publish(ctx: ImportContext, content_id: str, root: Path, entry_rel: str) -> str:
    if ctx.store.is_remote:
        ctx.store.sync_dir(content_id, root)
    return ctx.store.url_for(content_id, entry_rel)


def _persist(
    ctx: ImportContext,
    result: ImportResult,
    tag_type: TagTypeEnum = TagTypeEnum.interaction,
    ) -> ImportResult:
    artifact = ContentArtifact(
        id=result.content_id,
        content_type=result.content_type.value,
        subtype=result.subtype,
        content_url=result.content_url,
        entry_path=result.entry_path,
        scorable=result.scorable,
        difficulty=result.difficulty.value if result.difficulty else None,
        preview_html=result.preview_html,
    )
    ctx.repo.save_artifact(artifact)
    names = result.cues if tag_type == TagTypeEnum.phish_cue else result.tags
    ctx.repo.save_tags(result.content_id, names, tag_type)
    return result


def _read_html(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


# --- per-type imports ---

def import_package(ctx: ImportContext, content_id: str, subtype: str, archive_path: Path | str) -> ImportResult:
    """Extract an archive, tag it, localize assets and rewrite the entry document."""
    root = ctx.content_root(content_id)
    entry = extract_archive(
        archive_path, root,
        max_files=ctx.settings.max_archive_files, max_bytes=ctx.settings.max_archive_bytes,
    )
    normalize_record_test_calls(root)
    scorable = subtype == "scorm" or detect_scorable(root)
    logger.info("Package %s (%s): entry %s, scorable=%s", content_id, subtype, entry.name, scorable)

    html = _read_html(entry)
    html, tags = _topic_tags(ctx, html, use_model=subtype == "html")
    html = ctx.localizer(content_id).localize(html, root)
    entry_rel = entry.relative_to(root).as_posix()
    preview = convert_relative_urls_to_absolute(html, ctx.public_prefix(content_id))

    entry.write_text(_deliverable(ctx, content_id, html), encoding="utf-8")
    result = ImportResult(
        content_id=content_id,
        content_type=ContentType.package,
        subtype=subtype,
        content_url=_publish(ctx, content_id, root, entry_rel),
        entry_path=entry_rel,
        scorable=scorable,
        tags=tags,
        preview_html=preview,
        storage="s3" if ctx.store.is_remote else "local",
    )
    return _persist(ctx, result)


def import_email(ctx: ImportContext, content_id: str, source: Path | str, from_name: str | None = None) -> ImportResult:
    """Enforce email placeholder rules, analyze phish cues, localize and publish."""
    html = require_placeholders(
        _read_html(source), PlaceholderPolicy.email, {"from_name": from_name},
        ctx.settings.placeholder_rules_file,
    )

    cues: list[str] = []
    difficulty: Difficulty | None = None
    if ctx.rewriter is not None:
        try:
            analysis = tag_phishing_email(html, ctx.rewriter, ctx.settings.truncation_ratio)
            cues, difficulty = analysis.cues, analysis.difficulty
        except ExternalServiceError as e:
            logger.warning("Cue analysis failed for %s, importing without cues: %s", content_id, e)

    root = ctx.content_root(content_id)
    html = ctx.localizer(content_id).localize(html, root)
    preview = convert_relative_urls_to_absolute(html, ctx.public_prefix(content_id))

    entry = root / "index.html"
    entry.write_text(_deliverable(ctx, content_id, html), encoding="utf-8")
    result = ImportResult(
        content_id=content_id,
        content_type=ContentType.email,
        subtype="email",
        content_url=_publish(ctx, content_id, root, entry.name),
        entry_path=entry.name,
        cues=cues,
        difficulty=difficulty,
        preview_html=preview,
        storage="s3" if ctx.store.is_remote else "local",
    )
    return _persist(ctx, result, TagTypeEnum.phish_cue)


def import_raw_html(ctx: ImportContext, content_id: str, subtype: str, source: Path | str) -> ImportResult:
    """Training or landing page HTML: placeholder rules, tags, assets, scoring, delivery."""
    html = require_placeholders(
        _read_html(source), RAW_HTML_POLICIES[subtype], None, ctx.settings.placeholder_rules_file,
    )
    html, tags = _topic_tags(ctx, html, use_model=True)

    root = ctx.content_root(content_id)
    html = ctx.localizer(content_id).localize(html, root)
    preview = convert_relative_urls_to_absolute(html, ctx.public_prefix(content_id))

    entry = root / "index.html"
    entry.write_text(html, encoding="utf-8")
    normalize_record_test_calls(root)
    scorable = detect_scorable(root)

    entry.write_text(_deliverable(ctx, content_id, _read_html(entry)), encoding="utf-8")
    result = ImportResult(
        content_id=content_id,
        content_type=ContentType.raw_html,
        subtype=subtype,
        content_url=_publish(ctx, content_id, root, entry.name),
        entry_path=entry.name,
        scorable=scorable,
        tags=tags,
        preview_html=preview,
        storage="s3" if ctx.store.is_remote else "local",
    )
    return _persist(ctx, result)


def import_video(ctx: ImportContext, content_id: str, source: Path | str) -> ImportResult:
    """Videos are stored as-is."""
    source = Path(source)
    url = ctx.store.store(content_id, source.name, source.read_bytes())
    result = ImportResult(
        content_id=content_id,
        content_type=ContentType.video,
        subtype="video",
        content_url=url,
        entry_path=source.name,
        storage="s3" if ctx.store.is_remote else "local",
    )
    return _persist(ctx, result)


def run_import(
    ctx: ImportContext,
    content_id: str,
    upload_type: str,
    source: Path | str,
    from_name: str | None = None,
    ) -> ImportResult:
    """Dispatch an upload to its importer by type name (scorm, html, email, direct, training, landing, video)."""
    if upload_type not in UPLOAD_TYPES:
        raise ValidationError(f"Unsupported content type: {upload_type}", items=[upload_type])
    content_type, subtype = UPLOAD_TYPES[upload_type]
    check_content_id(ctx.settings.content_dir, content_id)
    logger.info("Importing %s as %s/%s from %s", content_id, content_type.value, subtype, source)

    if content_type == ContentType.package:
        return import_package(ctx, content_id, subtype, source)
    if content_type == ContentType.email:
        return import_email(ctx, content_id, source, from_name)
    if content_type == ContentType.raw_html:
        return import_raw_html(ctx, content_id, subtype, source)
    return import_video(ctx, content_id, source)
