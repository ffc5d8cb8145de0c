"""
Схемы кэшируемых сущностей: транскрипт, метаданные видео, результаты поиска.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter


class TranscriptSegment(BaseModel):
    """Фрагмент транскрипта"""

    start: float
    end: float
    text: str
    speaker: Optional[str] = None
    confidence: Optional[float] = None


class TranscriptRecord(BaseModel):
    """Запись транскрипта (кэшируется под ключом transcript:<video_id>)"""

    id: int
    video_id: str
    title: str
    description: Optional[str] = None
    summary: Optional[str] = None
    language: str = "en"
    duration: Optional[float] = None
    utterances: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("transcript_metadata", "metadata"),
    )
    status: str = "completed"
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TranscriptCreate(BaseModel):
    """Схема сохранения нового транскрипта"""

    video_id: str = Field(..., min_length=1, max_length=32)
    title: str
    description: Optional[str] = None
    summary: Optional[str] = None
    language: str = "en"
    duration: Optional[float] = Field(None, ge=0)
    utterances: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    status: str = "completed"
    ip_hash: Optional[str] = None


class VideoChapter(BaseModel):
    """Глава видео"""

    title: str
    start_time: float
    end_time: float
    summary: Optional[str] = None


class VideoMetadataInfo(BaseModel):
    language: str
    generated_at: datetime
    source: Literal["mock", "deepgram", "whisper"]


class VideoData(BaseModel):
    """Представление видео для просмотра (кэшируется под ключом video:<video_id>)"""

    video_id: str
    title: str
    description: str = ""
    duration: float = 0
    thumbnail_url: str = ""
    transcript: List[TranscriptSegment] = Field(default_factory=list)
    summary: str = ""
    chapters: List[VideoChapter] = Field(default_factory=list)
    metadata: VideoMetadataInfo


class SearchResult(BaseModel):
    """Элемент результатов поиска по транскриптам"""

    video_id: str
    title: str
    snippet: Optional[str] = None
    score: Optional[float] = None


SearchResults = List[SearchResult]
search_results_adapter = TypeAdapter(SearchResults)
