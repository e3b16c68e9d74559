from __future__ import annotations
from sqlmodel import Session

from contentpipe.crud.artifacts import get_artifact, get_tags, replace_tags, upsert_artifact
from contentpipe.crud.models import ContentArtifact, TagTypeEnum
from contentpipe.crud.repo import ArtifactRepo


class SQLArtifactRepo(ArtifactRepo):
    def __init__(self, session: Session):
        self.session = session

    def save_artifact(self, artifact: ContentArtifact) -> ContentArtifact:
        row, _ = upsert_artifact(self.session, artifact)
        return row

    def save_tags(self, content_id: str, tags: list[str], tag_type: TagTypeEnum = TagTypeEnum.interaction) -> list[str]:
        return [r.tag_name for r in replace_tags(self.session, content_id, tags, tag_type)]

    def get_artifact(self, content_id: str) -> ContentArtifact | None:
        return get_artifact(self.session, content_id)

    def get_tags(self, content_id: str) -> list[str]:
        return [r.tag_name for r in get_tags(self.session, content_id)]
