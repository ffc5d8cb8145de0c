"""
Transcripts API: чтение через кэш, поиск, история
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_transcript_service
from app.schemas.transcript import SearchResult, TranscriptCreate, TranscriptRecord
from app.services.transcript_service import TranscriptService

router = APIRouter()


@router.get("/search", response_model=List[SearchResult])
async def search_transcripts(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(20, ge=1, le=100),
    service: TranscriptService = Depends(get_transcript_service),
):
    """Поиск по заголовку, описанию и summary."""
    return await service.search(q, limit=limit)


@router.get("/history/{ip_hash}", response_model=List[TranscriptRecord])
async def get_history(
    ip_hash: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: TranscriptService = Depends(get_transcript_service),
):
    return await service.get_history(ip_hash, page=page, limit=limit)


@router.get("/{video_id}", response_model=TranscriptRecord)
async def get_transcript(
    video_id: str,
    service: TranscriptService = Depends(get_transcript_service),
):
    """Последний завершённый транскрипт видео."""
    transcript = await service.get_transcript(video_id)
    if transcript is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transcript not found")
    return transcript


@router.post("", response_model=TranscriptRecord, status_code=status.HTTP_201_CREATED)
async def create_transcript(
    body: TranscriptCreate,
    service: TranscriptService = Depends(get_transcript_service),
):
    """Сохранение транскрипта; сбрасывает кэш видео и поиска."""
    return await service.save_transcript(body)
