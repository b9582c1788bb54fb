import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from goalcast.api.deps import get_current_user_id
from goalcast.schemas import EnhanceNoteIn
from goalcast.services.ai import EnhancementUnavailable, enhance_note

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/enhance-note")
async def ai_enhance_note(payload: EnhanceNoteIn, user_id: int = Depends(get_current_user_id)) -> Dict[str, str]:
    note = payload.note.strip()
    if not note:
        raise HTTPException(status_code=400, detail="Note is required")

    try:
        enhanced = await enhance_note(note)
    except EnhancementUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to enhance note for user %s", user_id)
        raise HTTPException(status_code=502, detail="Failed to enhance note") from exc
    return {"enhanced_note": enhanced}
