"""Custom Exceptions for the LectureScribe application."""

class LectureScribeError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(LectureScribeError):
    """Exception raised for missing or invalid configuration (including the API key)."""
    pass

class DiscoveryError(LectureScribeError):
    """Exception raised when the source directory cannot be scanned."""
    pass

class LedgerError(LectureScribeError):
    """Exception raised when the progress ledger cannot be read or written."""
    pass

class TranscriptionError(LectureScribeError):
    """Exception raised for errors during transcription."""
    pass

class PersistenceError(LectureScribeError):
    """Exception raised when transcript artifacts cannot be written to disk."""
    pass

class EmbeddingError(LectureScribeError):
    """Exception raised when transcripts cannot be embedded into the HTML page."""
    pass

class FileSystemError(LectureScribeError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
