from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Optional


def validate_google_doc_url(url: Optional[str]) -> Dict[str, object]:
    """Validate Google Doc URL and extract document ID if present.

    Returns: {"valid": bool, "error": str or None, "doc_id": str or None}
    """
    if not url or not isinstance(url, str) or not url.strip():
        return {"valid": False, "error": "URL is required.", "doc_id": None}
    if "docs.google.com/document" not in url:
        return {"valid": False, "error": "URL must be a Google Doc.", "doc_id": None}
    m = re.search(r"/d/([a-zA-Z0-9_-]+)", url)
    if not m:
        return {"valid": False, "error": "Document ID not found in URL.", "doc_id": None}
    return {"valid": True, "error": None, "doc_id": m.group(1)}


def validate_github_repo(repo: Optional[str]) -> bool:
    """Check for the "owner/name" form expected by the GitHub contents API."""
    if not repo or not isinstance(repo, str):
        return False
    return re.fullmatch(r"[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+", repo.strip()) is not None


def sanitize_text(text: Optional[str]) -> str:
    """Remove null bytes and control characters, keeping line breaks and tabs."""
    if text is None:
        return ""
    cleaned = text.replace("\x00", "")
    cleaned = "".join(
        ch for ch in cleaned if ch in "\n\t" or not unicodedata.category(ch).startswith("C")
    )
    return cleaned


def validate_chunk_options(
    target_chunk_size: int,
    max_chunk_size: int,
    overlap_size: int,
    min_chunk_size: int,
) -> List[str]:
    """Return a list of problems with the chunk size settings (empty when valid)."""
    errors: List[str] = []
    sizes = {
        "target_chunk_size": target_chunk_size,
        "max_chunk_size": max_chunk_size,
        "min_chunk_size": min_chunk_size,
    }
    for name, value in sizes.items():
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            errors.append(f"{name} must be a positive integer.")
    if not isinstance(overlap_size, int) or isinstance(overlap_size, bool) or overlap_size < 0:
        errors.append("overlap_size must be a non-negative integer.")
    if errors:
        return errors

    if not min_chunk_size <= target_chunk_size <= max_chunk_size:
        errors.append("Chunk sizes must satisfy min_chunk_size <= target_chunk_size <= max_chunk_size.")
    if overlap_size >= target_chunk_size:
        errors.append("overlap_size must be smaller than target_chunk_size.")
    return errors


def coerce_int(value: object) -> Optional[int]:
    """Parse request values such as "800" or 800.0; None when not an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    return None

