class ResumeIngestError(RuntimeError):
    """Base class for errors raised at the service's collaborator boundaries."""


class CompletionError(ResumeIngestError):
    """The language-model call failed or returned nothing usable."""


class UnsupportedFileTypeError(ResumeIngestError):
    """Upload is not a PDF, DOCX or plain-text document."""


class EmptyDocumentError(ResumeIngestError):
    """Upload is empty or yields no extractable text."""
