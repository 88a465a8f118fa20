from typing import Dict, List

from fastapi import APIRouter, Query

from services.symbol_master import search_symbols

router = APIRouter()


@router.get("/search")
def search(
    q: str = Query(..., min_length=1, max_length=64),
    limit: int = Query(10, ge=1, le=50),
) -> List[Dict[str, str]]:
    return search_symbols(q, limit=limit)
