"""Artifact and tag persistence: upsert, tag replacement, lookups"""

from datetime import datetime

from sqlmodel import Session, select

from contentpipe.crud.models import ContentArtifact, ContentTag, TagTypeEnum


_ARTIFACT_FIELDS = (
    "content_type", "subtype", "content_url", "entry_path",
    "scorable", "tags", "difficulty", "preview_html",
)


def get_artifact(session: Session, content_id: str) -> ContentArtifact | None:
    """Return the artifact with the given id, or None if not found."""
    return session.get(ContentArtifact, content_id)


def list_artifacts(session: Session) -> list[ContentArtifact]:
    return list(session.exec(select(ContentArtifact).order_by(ContentArtifact.created_at)).all())


def upsert_artifact(session: Session, artifact: ContentArtifact) -> tuple[ContentArtifact, bool]:
    """Insert artifact, or overwrite the stored row on re-import. Returns (row, created).

    Flushes but does not commit; the caller owns the transaction.
    """
    existing = get_artifact(session, artifact.id)
    if existing is None:
        session.add(artifact)
        session.flush()
        return artifact, True

    for name in _ARTIFACT_FIELDS:
        setattr(existing, name, getattr(artifact, name))
    existing.updated_at = datetime.now()
    session.add(existing)
    session.flush()
    return existing, False


def replace_tags(
    session: Session,
    content_id: str,
    tags: list[str],
    tag_type: TagTypeEnum = TagTypeEnum.interaction,
    ) -> list[ContentTag]:
    """Replace every tag of content_id with tags (deduplicated, order kept) and sync the joined column."""
    for row in session.exec(select(ContentTag).where(ContentTag.content_id == content_id)).all():
        session.delete(row)
    session.flush()

    rows = [
        ContentTag(content_id=content_id, tag_name=name, tag_type=tag_type, confidence_score=1.0)
        for name in dict.fromkeys(tags)
    ]
    session.add_all(rows)

    artifact = get_artifact(session, content_id)
    if artifact is not None:
        artifact.tags = ",".join(r.tag_name for r in rows) or None
        session.add(artifact)
    session.flush()
    return rows


def get_tags(session: Session, content_id: str, tag_type: TagTypeEnum | None = None) -> list[ContentTag]:
    """Tags for content_id in insertion order, optionally of one type."""
    stmt = select(ContentTag).where(ContentTag.content_id == content_id)
    if tag_type is not None:
        stmt = stmt.where(ContentTag.tag_type == tag_type)
    return list(session.exec(stmt.order_by(ContentTag.id)).all())
