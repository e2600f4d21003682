from __future__ import annotations

import logging
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from flask import jsonify


class DocumentFetchError(Exception):
    """Custom exception for document fetching issues.

    Attributes:
        message: Description of the error
        status_code: HTTP status code associated with the failure
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ElementValidationError(Exception):
    """Raised when an element stream violates the input contract.

    Attributes:
        index: Position of the offending element in the input
        message: Description of the violation
    """

    def __init__(self, index: int, message: str) -> None:
        super().__init__(f"element {index}: {message}")
        self.index = index
        self.message = f"element {index}: {message}"


class ChunkingInvariantError(Exception):
    """Raised when emitted chunks break numbering or marker parity."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ImageResolutionError(Exception):
    """Raised when an image reference cannot be turned into binary content."""

    def __init__(self, image_ref: str, message: str = "") -> None:
        text = message or f"Image '{image_ref}' could not be resolved."
        super().__init__(text)
        self.image_ref = image_ref
        self.message = text


class PublishError(Exception):
    """Custom exception for remote content store failures.

    Attributes:
        message: Description of the error
        status_code: HTTP status returned by the remote API (0 when no response)
    """

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def handle_api_error(error: Exception) -> Dict[str, Any]:
    """Return standardized error dict: {"error": str, "type": str, "retryable": bool}.

    Parses requests errors and the custom exceptions above to decide whether
    the caller may retry.
    """
    type_str = "unknown_error"
    msg = str(error) if str(error) else error.__class__.__name__
    retryable = False

    from requests.exceptions import ConnectionError, HTTPError, Timeout

    if isinstance(error, Timeout):
        type_str = "network_timeout"
        retryable = True
    elif isinstance(error, ConnectionError):
        type_str = "network_connection_error"
        retryable = True
    elif isinstance(error, HTTPError):
        status = getattr(error.response, "status_code", None)
        type_str = "http_error"
        retryable = status in {429, 503}
        if status:
            msg = f"HTTP {status}: " + (getattr(error.response, "text", msg) or msg)

    # Custom exceptions
    if isinstance(error, DocumentFetchError):
        type_str = "document_fetch_error"
        retryable = error.status_code in {429, 503}
        msg = error.message
    elif isinstance(error, ElementValidationError):
        type_str = "element_validation_error"
        retryable = False
        msg = error.message
    elif isinstance(error, ChunkingInvariantError):
        type_str = "chunking_invariant_error"
        retryable = False
        msg = error.message
    elif isinstance(error, ImageResolutionError):
        type_str = "image_resolution_error"
        retryable = False
        msg = error.message
    elif isinstance(error, PublishError):
        type_str = "publish_error"
        retryable = error.status_code == 429 or 500 <= error.status_code <= 599
        msg = error.message

    return {"error": msg, "type": type_str, "retryable": retryable}


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log a formatted error and include context information.

    Uses logging with levels: ERROR (default), WARNING for retryable cases, INFO for context.
    """
    context = context or {}
    info = handle_api_error(error)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s | %(levelname)s | %(message)s",
        )

    level = logging.ERROR
    if info.get("retryable"):
        level = logging.WARNING

    logging.log(level, f"{info['type']}: {info['error']}")

    if context:
        logging.info(f"Context: {context}")

    tb = traceback.format_exc()
    if tb and "NoneType: None" not in tb:
        logging.debug(tb)


def register_error_handlers(app):
    """Register Flask error handlers that use our standardized error payloads."""

    @app.errorhandler(404)
    def handle_404(error):
        return jsonify({"error": "Not Found", "type": "not_found", "retryable": False}), 404

    @app.errorhandler(405)
    def handle_405(error):
        return jsonify({"error": "Method not allowed", "type": "method_not_allowed", "retryable": False}), 405

    @app.errorhandler(400)
    def handle_400(error):
        info = handle_api_error(error)
        info["type"] = "bad_request"
        info["retryable"] = False
        return jsonify(info), 400

    @app.errorhandler(ElementValidationError)
    def handle_element_validation(error):
        info = handle_api_error(error)
        info["index"] = error.index
        return jsonify(info), 400

    @app.errorhandler(500)
    def handle_500(error):
        info = handle_api_error(error)
        info.setdefault("type", "internal_server_error")
        return jsonify(info), 500

    @app.errorhandler(Exception)
    def handle_generic_exception(error):
        log_error(error, context={"timestamp": datetime.utcnow().isoformat()})
        info = handle_api_error(error)
        return jsonify(info), 500
