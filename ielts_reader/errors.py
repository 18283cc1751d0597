"""
Errors
======
Exception hierarchy for the reader pipeline.

    ReaderError
    ├── ConfigurationError   missing credential, detected before any request
    ├── DecodeError          PDF could not be opened or read
    ├── NetworkError         transport failure or non-2xx response
    └── FormatError          model output is not valid JSON after cleanup

A missing question section is not an error: the parser returns an empty list.
"""

from __future__ import annotations


class ReaderError(Exception):
    """Base class for all reader failures."""


class ConfigurationError(ReaderError):
    pass


class DecodeError(ReaderError):
    pass


class NetworkError(ReaderError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FormatError(ReaderError):
    pass
