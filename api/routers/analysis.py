from fastapi import APIRouter, Request

from ingredient_risk.models import AnalysisResult, AnalyzeRequest

router = APIRouter(tags=["analysis"])


@router.post("/api/analyze", response_model=AnalysisResult, response_model_by_alias=True)
async def analyze(data: AnalyzeRequest, request: Request):
    """Analyze an ingredient list (typed, OCR'd or barcode-resolved)."""
    # Lets the error handler answer in the caller's language
    request.state.language = data.language
    return await request.app.state.service.analyze(data)
