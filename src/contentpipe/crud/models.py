"""Database table definitions for imported content artifacts and their tags"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class TagTypeEnum(str, Enum):
    """Where a stored tag came from"""
    interaction = "interaction"
    phish_cue = "phish-cue"


class ContentArtifact(SQLModel, table=True):
    """The deliverable form of one imported content item"""
    __tablename__ = "content"
    id: str = Field(primary_key=True, max_length=64)
    content_type: str = Field(..., sa_column=Column(String(16), nullable=False), description="package, email, raw_html or video")
    subtype: Optional[str] = Field(default=None, sa_column=Column(String(16), nullable=True))
    content_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    entry_path: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    scorable: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    tags: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True), description="Comma-joined tag names")
    difficulty: Optional[str] = Field(default=None, sa_column=Column(String(16), nullable=True))
    preview_html: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class ContentTag(SQLModel, table=True):
    """One controlled-vocabulary tag or phish cue attached to a content item"""
    __tablename__ = "content_tags"
    __table_args__ = (UniqueConstraint("content_id", "tag_name", name="uq_content_tag"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    content_id: str = Field(..., foreign_key="content.id", index=True, nullable=False)
    tag_name: str = Field(..., sa_column=Column(String(64), nullable=False))
    tag_type: TagTypeEnum = Field(default=TagTypeEnum.interaction, nullable=False)
    confidence_score: float = Field(default=1.0, nullable=False)
