from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import additives, analysis
from core.service import AnalysisService, build_service, error_result
from ingredient_risk.errors import IngredientRiskError, NoInputError


def create_app(service: Optional[AnalysisService] = None) -> FastAPI:
    app = FastAPI(
        title="Food Safety Eye API",
        description="Ingredient risk analysis against the Taiwan food additive knowledge base",
        version="1.0.0"
    )

    # Built once per process; a malformed KB stops startup here
    app.state.service = service or build_service()

    # Configure CORS for frontend - allow all origins for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,  # Must be False when using wildcard origins
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IngredientRiskError)
    async def ingredient_risk_error_handler(request: Request, exc: IngredientRiskError):
        language = getattr(request.state, "language", "en")
        status_code = 400 if isinstance(exc, NoInputError) else 500
        return JSONResponse(
            status_code=status_code,
            content=error_result(exc, language).model_dump(by_alias=True),
        )

    app.include_router(analysis.router)
    app.include_router(additives.router)

    @app.get("/")
    async def root():
        return {"message": "Food Safety Eye API is running", "docs": "/docs"}

    @app.get("/api/health")
    async def health():
        return {"status": "healthy", "additives": len(app.state.service.knowledge_base)}

    return app


# Served through the factory so importing this module builds nothing:
#   uvicorn api.main:create_app --factory
if __name__ == "__main__":
    import uvicorn

    import config

    config.setup_logging()
    uvicorn.run("api.main:create_app", factory=True, host="0.0.0.0", port=8000)
