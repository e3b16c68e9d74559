from dataclasses import dataclass, field

from contentpipe.crud.models import ContentArtifact, TagTypeEnum
from contentpipe.crud.repo import ArtifactRepo


@dataclass
class MemoryArtifactRepo(ArtifactRepo):
    _artifacts: dict[str, ContentArtifact] = field(default_factory=dict)
    _tags: dict[str, list[tuple[str, TagTypeEnum]]] = field(default_factory=dict)

    def save_artifact(self, artifact: ContentArtifact) -> ContentArtifact:
        self._artifacts[artifact.id] = artifact
        return artifact

    def save_tags(self, content_id: str, tags: list[str], tag_type: TagTypeEnum = TagTypeEnum.interaction) -> list[str]:
        names = list(dict.fromkeys(tags))
        self._tags[content_id] = [(name, tag_type) for name in names]
        if content_id in self._artifacts:
            self._artifacts[content_id].tags = ",".join(names) or None
        return names

    def get_artifact(self, content_id: str) -> ContentArtifact | None:
        return self._artifacts.get(content_id)

    def get_tags(self, content_id: str) -> list[str]:
        return [name for name, _ in self._tags.get(content_id, [])]
