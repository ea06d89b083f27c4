"""Custom exceptions for mbox-search."""


class MboxSearchError(Exception):
    """Base exception for all mbox-search errors."""


class FileAccessError(MboxSearchError):
    """Exception raised when the mbox source cannot be opened or read."""


class StructuralParseError(MboxSearchError):
    """Exception raised when the token stack is unbalanced; aborts loading."""


class RecordValidationError(MboxSearchError):
    """Exception raised when a message draft lacks a required field."""


class DecodeError(MboxSearchError):
    """Exception raised when a header or body cannot be decoded."""


class EmailNotFoundError(MboxSearchError):
    """Exception raised when a message id is outside the archive."""


class StorageClosedError(MboxSearchError):
    """Exception raised when reading from a storage that was closed."""


class EmbeddingError(MboxSearchError):
    """Base exception for embedder failures."""


class ModelUnavailableError(EmbeddingError):
    """Exception raised when the embedding model cannot be loaded."""


class EncodeError(EmbeddingError):
    """Exception raised when encoding text into vectors fails."""


class SearchError(MboxSearchError):
    """Exception raised for vector index failures."""


class ConfigurationError(MboxSearchError):
    """Exception raised for configuration related errors."""
