"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "CONTENTPIPE_"


class Settings(BaseModel):
    app_name:         str = "contentpipe"
    db_url:           str = "sqlite:///contentpipe.db"
    content_dir:      str = Field(default="content", description="Local root holding one directory per content id")
    base_path:        str = Field(default="", description="URL path prefix content is served under")
    legacy_origin:    str = Field(default="https://login.phishme.com", description="Origin for /system/ and /images/ assets")
    chunk_size:       int = Field(default=50_000, ge=1, description="Max chars per rewriter chunk")
    max_ai_size:      int = Field(default=500_000, ge=0, description="Largest entry document sent for topic analysis")
    tag_mode:         str = Field(default="analyze", pattern="^(analyze|rewrite)$", description="analyze: JSON tags only; rewrite: chunked data-tag rewrite")
    max_content_size: int = Field(default=500_000, ge=1, description="Largest document sent for tagging or translation")
    truncation_ratio: float = Field(default=0.8, gt=0, le=1, description="Output/input size ratio below which truncation is logged")
    download_timeout: float = Field(default=10, gt=0, description="Per-asset download timeout in seconds")
    download_tries:   int = Field(default=2, ge=1, description="Attempts per asset download")
    max_archive_files: int = Field(default=10_000, ge=0, description="Max archive members; 0 = unlimited")
    max_archive_bytes: int = Field(default=1_000_000_000, ge=0, description="Max uncompressed archive size; 0 = unlimited")
    anthropic_api_key: Optional[str] = Field(default=None, description="API key; falls back to ANTHROPIC_API_KEY")
    anthropic_model:   str = Field(default="claude-sonnet-4-5", description="Model used by the content rewriter")
    anthropic_max_tokens: int = Field(default=64_000, ge=1, description="Response token budget for rewrites")
    storage:          str = Field(default="local", pattern="^(local|s3)$", description="local or s3")
    s3_bucket:        Optional[str] = None
    s3_prefix:        str = "content/"
    s3_region:        str = "us-east-1"
    s3_cdn_url:       Optional[str] = None
    placeholder_rules_file: Optional[str] = Field(default=None, description="YAML file overriding placeholder rule tables")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then CONTENTPIPE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
