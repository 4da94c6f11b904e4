"""Room Vision — environment photo analysis API for carpentry shops."""

import logging
from contextlib import asynccontextmanager

from .config import load_settings

settings = load_settings()

logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import PipelineError
from .models.schemas import AnalysisRequest, AnalysisResponse
from .workflow.pipeline import EnvironmentAnalysisPipeline

logger = logging.getLogger(__name__)

_pipeline: EnvironmentAnalysisPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    global _pipeline
    if _pipeline is not None:
        logger.info("Closing pipeline clients")
        await _pipeline.aclose()
        _pipeline = None


app = FastAPI(title="Room Vision", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_pipeline() -> EnvironmentAnalysisPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = EnvironmentAnalysisPipeline(settings)
    return _pipeline


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    return JSONResponse(status_code=exc.http_status, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Corpo da requisição inválido"})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok", "service": "roomvision"}


# ---------------------------------------------------------------------------
# Environment analysis
# ---------------------------------------------------------------------------

@app.options("/api/analyze-environment")
async def analyze_environment_preflight():
    return Response(status_code=200)


@app.post("/api/analyze-environment", response_model=AnalysisResponse)
async def analyze_environment(
    body: AnalysisRequest,
    pipeline: EnvironmentAnalysisPipeline = Depends(get_pipeline),
):
    try:
        return await pipeline.run(body)
    except PipelineError:
        raise
    except Exception as e:
        logger.exception("Environment analysis failed")
        raise PipelineError(str(e) or None) from e


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8100)
