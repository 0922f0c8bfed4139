import logging

from fastapi import FastAPI

from resume_ingest.api.routes.parse import router as parse_router
from resume_ingest.core.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Resume Ingest",
    description="Extracts experiences, education and skill groups from uploaded or pasted resumes, "
    "with an AI pass, a deterministic fallback and duplicate consolidation",
    version="0.1.0",
)

app.include_router(parse_router)

@app.get("/", tags=["health"])
def root():
    return {"service": "resume-ingest", "status": "running"}

@app.get("/health", tags=["health"])
def health():
    return {"status": "ok", "ai_extraction": bool(settings.ai_extraction_enabled and settings.openai_api_key)}
