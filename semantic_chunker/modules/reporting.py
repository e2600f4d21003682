"""Document-level statistics and the README published next to the chunks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from semantic_chunker.modules.metadata import count_image_markers
from semantic_chunker.modules.models import Chunk


def count_context_changes(chunks: Sequence[Chunk]) -> int:
    """Number of adjacent chunk pairs whose states, sections or tab differ."""
    changes = 0
    for previous, current in zip(chunks, chunks[1:]):
        if (
            current.metadata.states != previous.metadata.states
            or current.metadata.sections != previous.metadata.sections
            or current.metadata.tab_section != previous.metadata.tab_section
        ):
            changes += 1
    return changes


def compute_statistics(chunks: Sequence[Chunk], elements_processed: int) -> Dict[str, Any]:
    total_chars = sum(len(chunk.text) for chunk in chunks)
    tabs = {chunk.metadata.tab_section for chunk in chunks if chunk.metadata.tab_section}
    return {
        "total_chunks": len(chunks),
        "total_images": sum(len(chunk.images) for chunk in chunks),
        "average_chunk_size": round(total_chars / len(chunks)) if chunks else 0,
        "elements_processed": elements_processed,
        "tabs_detected": len(tabs),
        "context_changes": count_context_changes(chunks),
        "image_markers": sum(count_image_markers(chunk.text) for chunk in chunks),
    }


def _coverage(values) -> str:
    return ", ".join(sorted(values)) or "None detected"


def generate_readme(
    chunks: Sequence[Chunk],
    source_name: str,
    generated_at: Optional[datetime] = None,
    output_name: str = "semantic_output",
) -> str:
    """Markdown summary of a chunking run."""
    generated_at = generated_at or datetime.now(timezone.utc)
    stats = compute_statistics(chunks, elements_processed=0)
    states = {s for chunk in chunks for s in chunk.metadata.states}
    sections = {s for chunk in chunks for s in chunk.metadata.sections}
    topics = {t for chunk in chunks for t in chunk.metadata.topics}
    with_images = sum(1 for chunk in chunks if chunk.metadata.has_images)

    lines = [
        "# Semantic Processing Results",
        "",
        "## Processing Summary",
        "",
        f"**Generated on:** {generated_at.isoformat()}  ",
        f"**Source File:** {source_name}",
        "",
        "### Statistics",
        f"- **Total Chunks:** {stats['total_chunks']}",
        f"- **Total Images:** {stats['total_images']}",
        f"- **Chunks with Images:** {with_images}",
        f"- **Average Chunk Size:** {stats['average_chunk_size']} characters",
        "",
        "### Content Coverage",
        f"- **States:** {_coverage(states)}",
        f"- **Sections:** {_coverage(sections)}",
        f"- **Topics:** {_coverage(topics)}",
        "",
        "## File Structure",
        "",
        "```",
        f"{output_name.rstrip('/')}/",
        "├── semantic_chunks.json   # Chunks with image placeholders",
        "├── images/                # Images referenced by the chunks",
        "└── README.md              # This file",
        "```",
        "",
        "## Image Placeholders",
        "",
        "Images are embedded in chunk text as `[IMAGE_PLACEHOLDER_N]` markers, where `N` matches",
        "the image's `number`. Images that open a chunk (no preceding text in it) are excluded;",
        "consecutive unlabeled images share the context of the text before them.",
        "",
        "## Context Metadata",
        "",
        "- **States:** OH, MD, NJ, IL, NY, NV, MA",
        "- **Order Types:** RISE (internal), REGULAR (wholesale), GENERAL",
        "- **Topics:** PRICING, BATTERIES, BATCH_SUB, DELIVERY_DATE, ORDER_LIMIT, FIFO",
        "",
    ]
    return "\n".join(lines)
