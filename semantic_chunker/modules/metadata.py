"""Per-chunk metadata, derived from a chunk's final contents."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence, Tuple

from semantic_chunker.modules.models import ChunkMetadata, ContextState, ImageAttachment

PLACEHOLDER_PATTERN = re.compile(r"\[IMAGE_PLACEHOLDER_(\d+)\]")


def placeholder(number: int) -> str:
    return f"[IMAGE_PLACEHOLDER_{number}]"


def count_image_markers(text: str) -> int:
    return len(PLACEHOLDER_PATTERN.findall(text or ""))


def marker_numbers(text: str) -> Tuple[int, ...]:
    return tuple(int(n) for n in PLACEHOLDER_PATTERN.findall(text or ""))


def _distinct(values: Iterable[Optional[str]]) -> Tuple[str, ...]:
    # First-seen order keeps serialized output stable across runs.
    return tuple(dict.fromkeys(v for v in values if v))


def aggregate_metadata(
    text: str,
    images: Sequence[ImageAttachment],
    contexts: Sequence[ContextState],
    element_count: int,
    tab_id: Optional[str],
) -> ChunkMetadata:
    """Recompute a chunk's metadata.

    ``contexts`` are the context snapshots recorded for the chunk's text
    elements; image attachments contribute the context they captured. The
    marker count is taken from the text, so a mismatch with ``len(images)``
    stays visible to callers that verify it.
    """
    return ChunkMetadata(
        states=_distinct([c.state for c in contexts] + [i.state for i in images]),
        sections=_distinct([c.section for c in contexts] + [i.section for i in images]),
        topics=_distinct([c.topic for c in contexts] + [i.topic for i in images]),
        element_count=element_count,
        has_images=bool(images),
        image_count=len(images),
        char_count=len(text),
        word_count=len(text.split()),
        tab_section=tab_id,
        image_markers=count_image_markers(text),
    )


def neutralize_markers(text: str) -> str:
    """Rewrite literal placeholder tokens found in document text.

    ``[IMAGE_PLACEHOLDER_7]`` becomes ``(IMAGE_PLACEHOLDER_7)`` (same length),
    so only markers inserted for attached images match PLACEHOLDER_PATTERN.
    """
    return PLACEHOLDER_PATTERN.sub(lambda m: f"(IMAGE_PLACEHOLDER_{m.group(1)})", text or "")
