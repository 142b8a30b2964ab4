from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request

from ingredient_risk.knowledge_base.models import AdditiveRecord

router = APIRouter(tags=["additives"])


@router.get("/api/additives", response_model=List[AdditiveRecord], response_model_by_alias=True)
async def list_additives(request: Request, risk_level: Optional[str] = None, category: Optional[str] = None):
    """List knowledge base records, optionally filtered by risk level or category."""
    records = request.app.state.service.knowledge_base.records
    if risk_level:
        records = [r for r in records if r.risk_level == risk_level]
    if category:
        records = [r for r in records if (r.category or "").lower() == category.lower()]
    return list(records)


@router.get("/api/additives/{canonical_id}", response_model=AdditiveRecord, response_model_by_alias=True)
async def get_additive(canonical_id: str, request: Request):
    record = request.app.state.service.knowledge_base.get(canonical_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Additive not found: {canonical_id}")
    return record
