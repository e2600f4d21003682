from __future__ import annotations

# Re-export validators and error handlers for convenience
from .validators import (
    validate_google_doc_url,
    validate_github_repo,
    sanitize_text,
    validate_chunk_options,
    coerce_int,
)

from .error_handlers import (
    DocumentFetchError,
    ElementValidationError,
    ChunkingInvariantError,
    ImageResolutionError,
    PublishError,
    handle_api_error,
    log_error,
    register_error_handlers,
)

__all__ = [
    # validators
    "validate_google_doc_url",
    "validate_github_repo",
    "sanitize_text",
    "validate_chunk_options",
    "coerce_int",
    # error handlers
    "DocumentFetchError",
    "ElementValidationError",
    "ChunkingInvariantError",
    "ImageResolutionError",
    "PublishError",
    "handle_api_error",
    "log_error",
    "register_error_handlers",
]
