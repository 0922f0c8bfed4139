import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from resume_ingest.core.dedup import filter_batch_against_existing
from resume_ingest.core.errors import EmptyDocumentError, UnsupportedFileTypeError
from resume_ingest.core.llm_client import CompletionClient, get_completion_client
from resume_ingest.core.resume_parser import parse_resume_text
from resume_ingest.core.schemas import (
    DedupeRequest,
    DedupeResponse,
    ParseResponse,
    ParseTextRequest,
)
from resume_ingest.core.text_extraction import extract_text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["parse"])


_PARSE_EXAMPLE = {
    "batch": {
        "experiences": [
            {
                "organization": "Acme Corp",
                "role_title": "Software Intern",
                "section_label": "Experience",
                "location": "New York, NY",
                "start_date": "2024-06-01",
                "end_date": "2024-08-01",
                "is_current": False,
                "summary": None,
                "achievements": ["Built the billing dashboard", "Cut page load time by 40%"],
                "skills": [],
            }
        ],
        "education": [
            {
                "institution": "State University",
                "degree": "B.S. in Computer Science",
                "field_of_study": "Computer Science",
                "start_date": None,
                "end_date": "2025-05-01",
                "achievements": ["GPA: 3.8"],
            }
        ],
        "skills": [{"category": "Languages", "skills": ["Python", "SQL"]}],
    },
    "diagnostics": [],
    "sources": {"experiences": "ai", "education": "ai", "skills": "ai"},
    "mime_type": "application/pdf",
    "original_filename": "resume.pdf",
}


@router.post(
    "/parse",
    response_model=ParseResponse,
    summary="Parse Resume",
    description="Extract experiences, education and skill groups from a resume file (DOCX, PDF, TXT or MD).",
    responses={
        200: {
            "description": "Successfully parsed resume",
            "content": {"application/json": {"example": _PARSE_EXAMPLE}},
        },
        400: {"description": "Empty file uploaded"},
        415: {"description": "Unsupported file format"},
        422: {"description": "File has no extractable text"}
    }
)
async def parse_resume(
    file: UploadFile = File(..., description="Resume file (DOCX, PDF, TXT or MD format)"),
    client: Optional[CompletionClient] = Depends(get_completion_client),
):
    """
    Parse a resume file.

    **Supported formats:**
    - DOCX (.docx)
    - PDF (.pdf) - Text-layer extraction only, OCR not supported
    - TXT / MD

    **Returns:**
    - **batch**: experiences, education and skill groups
    - **sources**: whether each category came from the AI pass or the fallback
    - **diagnostics**: soft failures recorded while parsing
    """
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")

    try:
        extracted = extract_text(raw, filename=file.filename, content_type=file.content_type)
    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=415, detail=str(e)) from e
    except EmptyDocumentError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    outcome = parse_resume_text(extracted.text, client=client)
    return ParseResponse(
        batch=outcome.batch,
        diagnostics=outcome.diagnostics,
        sources=outcome.sources,
        mime_type=extracted.mime_type,
        original_filename=extracted.original_filename,
    )


@router.post(
    "/parse/text",
    response_model=ParseResponse,
    summary="Parse Pasted Resume Text",
    responses={422: {"description": "Text is empty or longer than 50,000 characters"}},
)
def parse_resume_text_body(
    payload: ParseTextRequest,
    client: Optional[CompletionClient] = Depends(get_completion_client),
):
    """Parse resume text pasted into a form instead of uploaded as a file."""
    if not payload.text.strip():
        raise HTTPException(status_code=422, detail="Resume text is empty.")
    outcome = parse_resume_text(payload.text, client=client)
    return ParseResponse(
        batch=outcome.batch,
        diagnostics=outcome.diagnostics,
        sources=outcome.sources,
        mime_type="text/plain",
    )


@router.post(
    "/dedupe",
    response_model=DedupeResponse,
    summary="Filter Against Stored Records",
    description="Drop parsed records that duplicate records the caller already stores. Nothing is merged.",
)
def dedupe_batch(payload: DedupeRequest):
    batch, dropped = filter_batch_against_existing(
        payload.batch,
        existing_experiences=payload.existing_experiences,
        existing_education=payload.existing_education,
        existing_skills=payload.existing_skills,
    )
    return DedupeResponse(batch=batch, dropped=dropped)
