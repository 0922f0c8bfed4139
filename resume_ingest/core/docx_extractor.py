from io import BytesIO
from typing import List

from docx import Document


def extract_docx_lines(docx_bytes: bytes) -> List[str]:
    """
    Non-empty paragraph text of a DOCX, in document order.

    Table cells are appended after the body paragraphs, one line per
    non-empty cell paragraph (two-column resume templates keep dates there).
    """
    doc = Document(BytesIO(docx_bytes))
    out: List[str] = []
    for p in doc.paragraphs:
        t = (p.text or "").strip()
        if t:
            out.append(t)
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                for p in cell.paragraphs:
                    t = (p.text or "").strip()
                    if t and t not in out[-1:]:
                        out.append(t)
    return out


def extract_docx_text(docx_bytes: bytes) -> str:
    return "\n".join(extract_docx_lines(docx_bytes))
