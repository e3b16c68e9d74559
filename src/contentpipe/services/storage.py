"""Content storage collaborators: local filesystem and S3 object storage"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from contentpipe.core.errors import ExternalServiceError


logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    """Where imported content lives and how browsers reach it."""

    is_remote: bool

    def store(self, content_id: str, relative_path: str, data: bytes) -> str:
        ...

    def url_for(self, content_id: str, relative_path: str) -> str:
        ...

    def base_url(self, content_id: str) -> str:
        ...

    def sync_dir(self, content_id: str, local_dir: Path) -> list[str]:
        ...


class LocalStore:
    """Files under content_dir/{id}/, served at {base_path}/content/{id}/."""

    is_remote = False

    def __init__(self, content_dir: Path | str, base_path: str = ""):
        self.content_dir = Path(content_dir)
        self.base_path = base_path.rstrip("/")

    def local_dir(self, content_id: str) -> Path:
        return self.content_dir / content_id

    def store(self, content_id: str, relative_path: str, data: bytes) -> str:
        dest = self.local_dir(content_id) / relative_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        return self.url_for(content_id, relative_path)

    def url_for(self, content_id: str, relative_path: str) -> str:
        return f"{self.base_path}/content/{content_id}/{relative_path.lstrip('/')}"

    def base_url(self, content_id: str) -> str:
        return self.url_for(content_id, "")

    def sync_dir(self, content_id: str, local_dir: Path) -> list[str]:
        """Nothing to upload; files already live where they are served from."""
        return []


class S3Store:
    """Objects at s3://{bucket}/{prefix}{id}/..., addressed through a CDN when one is configured."""

    is_remote = True

    def __init__(self, bucket: str, prefix: str = "content/", region: str = "us-east-1",
                 cdn_url: str | None = None, client=None):
        self.bucket = bucket
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.region = region
        self.cdn_url = (cdn_url or "").rstrip("/")
        self.client = client or boto3.client("s3", region_name=region)

    def key_for(self, content_id: str, relative_path: str) -> str:
        return f"{self.prefix}{content_id}/{relative_path.lstrip('/')}"

    def url_for(self, content_id: str, relative_path: str) -> str:
        key = self.key_for(content_id, relative_path)
        if self.cdn_url:
            return f"{self.cdn_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def base_url(self, content_id: str) -> str:
        return self.url_for(content_id, "")

    def store(self, content_id: str, relative_path: str, data: bytes) -> str:
        key = self.key_for(content_id, relative_path)
        content_type = mimetypes.guess_type(relative_path)[0] or "application/octet-stream"
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise ExternalServiceError(f"S3 upload failed for {key}: {e}") from e
        return self.url_for(content_id, relative_path)

    def sync_dir(self, content_id: str, local_dir: Path) -> list[str]:
        """Upload every file under local_dir; returns the uploaded relative paths."""
        uploaded = []
        for path in sorted(Path(local_dir).rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(local_dir).as_posix()
            self.store(content_id, relative, path.read_bytes())
            uploaded.append(relative)
        logger.info("Uploaded %d file(s) to s3://%s/%s%s/", len(uploaded), self.bucket, self.prefix, content_id)
        return uploaded
