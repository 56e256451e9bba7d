"""
Card pool endpoints: listing, CSV import and CSV export.
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response
from datetime import datetime, timezone
import csv
import logging

from clozedrill.core.exceptions import ValidationError
from clozedrill.core.registry import get_registry
from clozedrill.schemas.card import CardListResponse
from clozedrill.schemas.practice import ImportResponse
from clozedrill.services.card_import_service import (
    export_cards_csv,
    export_mastered_csv,
    parse_cards_csv,
)
from clozedrill.services.practice_service import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])


@router.get("/{user_id}", response_model=CardListResponse)
async def list_cards(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """List every card in the user's pool with its progress."""
    coordinator = registry.get(user_id)
    stats = coordinator.stats()
    return CardListResponse(
        cards=coordinator.pool,
        total=stats.total,
        active=stats.active,
        untouched=stats.untouched,
        mastered=stats.mastered,
    )


@router.post("/{user_id}/import", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
async def import_cards(
    user_id: str,
    file: UploadFile = File(...),
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Import cards from a CSV file.

    Expected header: ``word,sentence,word_mean,sentence_translation``.
    Rows without a word or sentence are skipped and counted as failed.
    """
    content = await file.read()
    try:
        result = parse_cards_csv(content)
    except (UnicodeDecodeError, csv.Error) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not read CSV file: {str(e)}"
        )

    if not result.cards:
        raise ValidationError(f"No valid rows found ({result.failed} row(s) missing word or sentence)")

    coordinator = registry.get(user_id)
    persist = coordinator.import_cards(result.cards)

    logger.info(f"Imported {result.imported} card(s) for user {user_id} from {file.filename}")
    return ImportResponse(
        message=f"Imported {result.imported} card(s)",
        total_rows=result.total_rows,
        imported=result.imported,
        failed=result.failed,
        word_matched=result.word_matched,
        persist=persist,
    )


@router.get("/{user_id}/export")
async def export_cards(
    user_id: str,
    mastered_only: bool = False,
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Export the user's cards as CSV.

    Mastered cards carry ``mastered`` in the ``tags`` column. With
    ``mastered_only`` only those cards are exported.
    """
    coordinator = registry.get(user_id)
    pool = coordinator.pool

    if mastered_only:
        content = export_mastered_csv(pool)
        prefix = "mastered_words"
    else:
        content = export_cards_csv(pool)
        prefix = "flashcards_export"

    filename = f"{prefix}_{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}"
        }
    )
