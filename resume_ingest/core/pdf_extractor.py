from io import BytesIO
import logging
import re
from typing import Any, List, Optional, Sequence, Tuple

import pdfplumber

logger = logging.getLogger(__name__)

# Unmapped glyphs come out of pdfminer as "(cid:123)"
CID_RE = re.compile(r"\(cid:\d+\)")

DEFAULT_X_TOLERANCES = (1.5, 2, 2.5, 3)


def strip_cid_artifacts(text: str) -> str:
    """'Python (cid:127) SQL' -> 'Python SQL'"""
    text = CID_RE.sub(" ", text)
    return re.sub(r"[ \t]{2,}", " ", text)


def _words_to_text(page: Any, *, x_tolerance: float = 3, line_y_tolerance: float = 3) -> str:
    """
    Rebuild page text from word objects, one output line per visual line.

    Words are grouped by their rounded 'top' coordinate and joined with single
    spaces, which avoids the glued and over-spaced words of layout extraction.
    """
    words = page.extract_words(
        x_tolerance=x_tolerance,
        y_tolerance=2,
        keep_blank_chars=False,
        use_text_flow=True,
    )
    if not words:
        return ""

    words.sort(key=lambda w: (round(w["top"] / line_y_tolerance), w["x0"]))
    lines = []
    current_key = None
    current_words: List[str] = []

    for w in words:
        key = round(w["top"] / line_y_tolerance)
        if current_key is None or key == current_key:
            current_words.append(w["text"])
            current_key = key
        else:
            lines.append(" ".join(current_words))
            current_words = [w["text"]]
            current_key = key

    if current_words:
        lines.append(" ".join(current_words))

    return "\n".join(lines)


def _score_text(s: str) -> float:
    """
    Extraction quality, lower is better.

    Penalizes 18+ letter tokens (glued words) and more than ten single-letter
    tokens (letter-spaced text). Empty text scores worst.
    """
    tokens = re.findall(r"[A-Za-z]+", s)
    if not tokens:
        return 1e9
    long_glued = sum(1 for t in tokens if len(t) >= 18)
    excessive_singles = max(0, sum(1 for t in tokens if len(t) == 1) - 10)
    return long_glued * 10 + excessive_singles * 3


def _extract_best(page: Any, x_tolerances: Optional[Sequence[float]] = None) -> Tuple[str, float]:
    """Try several x_tolerance values and keep the best-scoring text."""
    candidates = []
    for xt in x_tolerances or DEFAULT_X_TOLERANCES:
        txt = _words_to_text(page, x_tolerance=xt)
        candidates.append((_score_text(txt), xt, txt))
    candidates.sort(key=lambda c: c[0])
    _, best_xt, best_txt = candidates[0]
    return best_txt, best_xt


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """
    Text layer of a PDF, one line per visual line, pages in order.

    No OCR: scanned PDFs come back as an empty string.
    """
    pages: List[str] = []
    with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
        for page_i, page in enumerate(pdf.pages, start=1):
            text, used_xt = _extract_best(page)
            lines = [ln.strip() for ln in strip_cid_artifacts(text).splitlines() if ln.strip()]
            logger.debug(f"PDF page {page_i}: {len(lines)} lines at x_tolerance={used_xt}")
            if lines:
                pages.append("\n".join(lines))
    return "\n".join(pages)
