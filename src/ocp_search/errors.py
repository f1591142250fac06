"""Error taxonomy shared by the retrieval core and the service layer."""


class OcpSearchError(Exception):
    """Base class for errors raised by ocp_search."""


class ValidationError(OcpSearchError, ValueError):
    """Raised when untrusted request input is missing, oversized, or malformed."""


class EmbeddingError(OcpSearchError, RuntimeError):
    """Raised when the embedding collaborator fails or returns a malformed batch."""


class GenerationError(OcpSearchError, RuntimeError):
    """Raised when the text-generation collaborator cannot produce an answer."""
