from __future__ import annotations
from abc import ABC, abstractmethod

from contentpipe.crud.models import ContentArtifact, TagTypeEnum


class ArtifactRepo(ABC):
    """Persistence handle passed into an import job."""

    @abstractmethod
    def save_artifact(self, artifact: ContentArtifact) -> ContentArtifact:
        raise NotImplementedError

    @abstractmethod
    def save_tags(self, content_id: str, tags: list[str], tag_type: TagTypeEnum = TagTypeEnum.interaction) -> list[str]:
        """Replace the stored tags for content_id; returns the names kept."""
        raise NotImplementedError

    @abstractmethod
    def get_artifact(self, content_id: str) -> ContentArtifact | None:
        raise NotImplementedError

    @abstractmethod
    def get_tags(self, content_id: str) -> list[str]:
        raise NotImplementedError
