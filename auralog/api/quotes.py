from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auralog.api.admin import require_admin_key
from auralog.db.database import get_db
from auralog.models.quote import StaticQuote

router = APIRouter(prefix="/api", tags=["quotes"], dependencies=[Depends(require_admin_key)])


class QuoteResponse(BaseModel):
    id: int
    text: str
    author: Optional[str]
    last_sent_date: Optional[datetime]


@router.get("/quotes", response_model=List[QuoteResponse])
async def list_quotes(db: AsyncSession = Depends(get_db)):
    """Static quote pool in rotation order, next quote first."""
    result = await db.execute(
        select(StaticQuote).order_by(
            StaticQuote.last_sent_date.asc().nulls_first(), StaticQuote.id.asc()
        )
    )
    return [
        QuoteResponse(
            id=q.id,
            text=q.text,
            author=q.author,
            last_sent_date=q.last_sent_date,
        )
        for q in result.scalars().all()
    ]
