"""Semantic chunk construction.

ChunkBuilder responsibilities:
- Fold the context tagger over the element stream
- Accumulate text elements into chunks bounded by ``max_chunk_size``, flushing
  only between elements and never below ``min_chunk_size``
- Seed each size-triggered chunk with a word-aligned overlap of its predecessor
- Never let a chunk cross a tab boundary
- Attach images with ``[IMAGE_PLACEHOLDER_N]`` markers, excluding images that
  open a chunk and grouping consecutive unlabeled images
- Verify numbering and marker parity on the finished chunk list
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from semantic_chunker.modules.context_tagger import ContextTagger
from semantic_chunker.modules.metadata import (
    PLACEHOLDER_PATTERN,
    aggregate_metadata,
    marker_numbers,
    neutralize_markers,
    placeholder,
)
from semantic_chunker.modules.models import (
    Chunk,
    ChunkingOptions,
    ChunkingResult,
    ContextState,
    DocumentElement,
    ImageAttachment,
    ImageElement,
    PositionInText,
    TextElement,
    image_filename,
)
from semantic_chunker.utils import ChunkingInvariantError, ElementValidationError

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"
MARKER_SEPARATOR = " "
_SENTENCE_END = re.compile(r"[.!?][\"'”’)\]]*$")


class BuilderPhase(str, Enum):
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    DONE = "done"


@dataclass
class _ChunkDraft:
    tab_id: Optional[str]
    seed: str = ""
    text: str = ""
    has_text: bool = False
    element_count: int = 0
    last_text: Optional[str] = None
    oversized: bool = False
    contexts: List[ContextState] = field(default_factory=list)
    images: List[ImageAttachment] = field(default_factory=list)


def validate_elements(elements: Sequence[DocumentElement]) -> None:
    """Reject the whole stream on the first element that breaks the input contract."""
    previous: Optional[int] = None
    for index, element in enumerate(elements):
        if not isinstance(element, (TextElement, ImageElement)):
            raise ElementValidationError(
                index, f"unsupported element type {type(element).__name__}; expected text or image."
            )
        if previous is not None and element.sequence_index <= previous:
            raise ElementValidationError(index, "sequence_index must be strictly increasing.")
        previous = element.sequence_index


def overlap_seed(text: str, overlap_size: int) -> str:
    """Word-aligned suffix of ``text`` no longer than ``overlap_size``.

    The suffix starts after the last placeholder marker it would contain, so
    markers are never repeated in the next chunk.
    """
    if overlap_size <= 0 or not text:
        return ""
    start = max(0, len(text) - overlap_size)
    tail = text[start:]
    if start > 0 and not text[start - 1].isspace():
        # Cut landed inside a word: skip to the next boundary.
        boundary = re.search(r"\s", tail)
        tail = tail[boundary.end():] if boundary else ""
    markers = list(PLACEHOLDER_PATTERN.finditer(tail))
    if markers:
        tail = tail[markers[-1].end():]
    return tail.strip()


def verify_chunks(chunks: Sequence[Chunk]) -> None:
    """Fail loudly on numbering or marker parity defects; never renumber."""
    last_number = 0
    for position, chunk in enumerate(chunks):
        if chunk.chunk_id != position:
            raise ChunkingInvariantError(f"chunk at position {position} has chunk_id {chunk.chunk_id}.")
        numbers = [image.number for image in chunk.images]
        if list(marker_numbers(chunk.text)) != numbers:
            raise ChunkingInvariantError(
                f"chunk {chunk.chunk_id}: placeholder markers do not match attached images {numbers}."
            )
        if chunk.metadata.image_markers != len(chunk.images):
            raise ChunkingInvariantError(
                f"chunk {chunk.chunk_id}: image_markers={chunk.metadata.image_markers} "
                f"but {len(chunk.images)} images are attached."
            )
        for number in numbers:
            if number <= last_number:
                raise ChunkingInvariantError(
                    f"chunk {chunk.chunk_id}: image number {number} is not greater than {last_number}."
                )
            last_number = number


class _BuildRun:
    """Accumulators for a single ``ChunkBuilder.build`` invocation."""

    def __init__(
        self,
        options: ChunkingOptions,
        tagger: ContextTagger,
        elements: Sequence[DocumentElement] = (),
    ) -> None:
        self.options = options
        self.tagger = tagger
        self.elements = elements
        self.phase = BuilderPhase.ACCUMULATING
        self.context = ContextState()
        self.chunks: List[Chunk] = []
        self.draft = _ChunkDraft(tab_id=None)
        self.next_image_number = 1
        self.elements_seen = 0
        self.excluded_images = 0
        self.oversized: List[int] = []
        # Indices into draft.images whose position waits on how the run ends.
        self.pending_leaders: List[int] = []
        self.previous_unlabeled = False

    def feed(self, element: DocumentElement) -> None:
        self.context, _ = self.tagger.tag(element, self.context)
        self.elements_seen += 1

        if element.tab_id != self.draft.tab_id:
            if self.draft.has_text:
                self._flush(carry_overlap=False, next_tab=element.tab_id)
            else:
                self._start_draft(element.tab_id)

        if isinstance(element, TextElement):
            self._add_text(element)
        elif isinstance(element, ImageElement):
            self._add_image(element)
        else:  # pragma: no cover - validate_elements rejects anything else
            raise ElementValidationError(self.elements_seen - 1, "unsupported element kind.")

    def finish(self) -> List[Chunk]:
        if self.draft.has_text:
            self._flush(carry_overlap=False, next_tab=self.draft.tab_id)
        elif not self.chunks and self.elements_seen:
            # Images-only (or blank) stream: one empty chunk, every image excluded.
            self._emit(self.draft)
        self.phase = BuilderPhase.DONE
        logger.debug("Chunking done: %s chunks from %s elements", len(self.chunks), self.elements_seen)
        return self.chunks

    def _start_draft(self, tab_id: Optional[str], seed: str = "") -> None:
        self.draft = _ChunkDraft(tab_id=tab_id, seed=seed)
        self.pending_leaders = []
        self.previous_unlabeled = False

    def _trailing_marker_length(self, tab_id: Optional[str]) -> int:
        """Characters the markers of the image run after the current element will add."""
        length = 0
        number = self.next_image_number
        for index in range(self.elements_seen, len(self.elements)):
            upcoming = self.elements[index]
            if upcoming.tab_id != tab_id:
                break
            if isinstance(upcoming, TextElement):
                if upcoming.text.strip():
                    break
                continue
            length += len(MARKER_SEPARATOR) + len(placeholder(number))
            number += 1
        return length

    def _add_text(self, element: TextElement) -> None:
        text = neutralize_markers(element.text.strip())
        if not text:
            return

        draft = self.draft
        markers_length = self._trailing_marker_length(element.tab_id)
        if draft.has_text:
            candidate_length = len(draft.text) + len(PARAGRAPH_SEPARATOR) + len(text) + markers_length
            if candidate_length > self.options.max_chunk_size:
                if len(draft.text) >= self.options.min_chunk_size:
                    self._flush(carry_overlap=True, next_tab=draft.tab_id)
                else:
                    logger.debug(
                        "Chunk below min size (%s chars); appending element %s past the ceiling",
                        len(draft.text),
                        element.sequence_index,
                    )

        self._close_image_run(trailing=False)
        self._append_text(text, element, markers_length)

    def _append_text(self, text: str, element: TextElement, markers_length: int = 0) -> None:
        draft = self.draft
        if draft.text:
            draft.text = draft.text + PARAGRAPH_SEPARATOR + text
        elif draft.seed:
            seeded = draft.seed + PARAGRAPH_SEPARATOR + text
            if len(seeded) + markers_length > self.options.max_chunk_size:
                logger.debug("Dropping overlap before element %s to respect the ceiling", element.sequence_index)
                draft.text = text
            else:
                draft.text = seeded
        else:
            draft.text = text

        if len(text) > self.options.max_chunk_size:
            logger.warning(
                "Element %s is %s chars, above max_chunk_size=%s; emitting an oversized chunk",
                element.sequence_index,
                len(text),
                self.options.max_chunk_size,
            )
            draft.oversized = True

        draft.has_text = True
        draft.element_count += 1
        draft.last_text = text
        draft.contexts.append(self.context)
        self.previous_unlabeled = False

    def _add_image(self, element: ImageElement) -> None:
        draft = self.draft
        if not draft.has_text:
            logger.debug(
                "Excluding image %s (%s): no text precedes it in its chunk",
                element.sequence_index,
                PositionInText.BEFORE_CHUNK.value,
            )
            self.excluded_images += 1
            return

        label = (element.label or "").strip() or None
        number = self.next_image_number
        self.next_image_number += 1

        if label is None and self.previous_unlabeled:
            position = PositionInText.CONSECUTIVE_AFTER
        else:
            # Resolved in _close_image_run once we know whether the run trails the chunk.
            position = PositionInText.AFTER_SENTENCE
            self.pending_leaders.append(len(draft.images))

        filename = image_filename(number, element.image_ref)
        draft.images.append(
            ImageAttachment(
                image_ref=element.image_ref,
                number=number,
                filename=filename,
                path=f"{self.options.image_path_prefix.rstrip('/')}/{filename}",
                label=label,
                context_text=draft.last_text or "",
                state=self.context.state,
                section=self.context.section,
                topic=self.context.topic,
                position_in_text=position,
            )
        )
        draft.text = draft.text + MARKER_SEPARATOR + placeholder(number)
        draft.element_count += 1
        self.previous_unlabeled = label is None

    def _close_image_run(self, trailing: bool) -> None:
        if not self.pending_leaders:
            return
        draft = self.draft
        ends_sentence = bool(_SENTENCE_END.search(draft.last_text or ""))
        position = (
            PositionInText.AFTER_SENTENCE if trailing or ends_sentence else PositionInText.MIDDLE_PARAGRAPH
        )
        for index in self.pending_leaders:
            draft.images[index] = replace(draft.images[index], position_in_text=position)
        self.pending_leaders = []

    def _flush(self, carry_overlap: bool, next_tab: Optional[str]) -> None:
        self.phase = BuilderPhase.FLUSHING
        self._close_image_run(trailing=True)
        chunk = self._emit(self.draft)
        seed = overlap_seed(chunk.text, self.options.overlap_size) if carry_overlap else ""
        self._start_draft(next_tab, seed=seed)
        self.phase = BuilderPhase.ACCUMULATING

    def _emit(self, draft: _ChunkDraft) -> Chunk:
        chunk_id = len(self.chunks)
        images = tuple(draft.images)
        chunk = Chunk(
            chunk_id=chunk_id,
            text=draft.text,
            images=images,
            metadata=aggregate_metadata(
                draft.text, images, draft.contexts, draft.element_count, draft.tab_id
            ),
        )
        if draft.oversized or len(draft.text) > self.options.max_chunk_size:
            # Also covers a text element whose own image markers cannot fit after it.
            self.oversized.append(chunk_id)
        self.chunks.append(chunk)
        logger.debug(
            "Flushed chunk %s: %s chars, %s images, tab=%s",
            chunk_id,
            len(chunk.text),
            len(images),
            draft.tab_id,
        )
        return chunk


class ChunkBuilder:
    """Turns an ordered element stream into semantic chunks.

    Each call to ``build`` owns its counters, so one builder can be reused
    and calls never share state.
    """

    def __init__(self, options: Optional[ChunkingOptions] = None, tagger: Optional[ContextTagger] = None) -> None:
        self.options = options or ChunkingOptions()
        self.tagger = tagger or ContextTagger()

    def build(self, elements: Iterable[DocumentElement]) -> List[Chunk]:
        return self.build_with_report(elements).chunks

    def build_with_report(self, elements: Iterable[DocumentElement]) -> ChunkingResult:
        items = list(elements)
        validate_elements(items)

        run = _BuildRun(self.options, self.tagger, items)
        for element in items:
            run.feed(element)
        chunks = run.finish()
        verify_chunks(chunks)

        if run.oversized:
            logger.warning("Emitted %s oversized chunk(s): %s", len(run.oversized), run.oversized)
        return ChunkingResult(
            chunks=chunks,
            elements_processed=run.elements_seen,
            excluded_images=run.excluded_images,
            oversized_chunks=tuple(run.oversized),
        )
