"""Records exchanged by the chunking pipeline.

Elements come in as a closed variant (``TextElement`` | ``ImageElement``).
Everything the builder emits (``Chunk``, ``ImageAttachment``, ``ChunkMetadata``)
is frozen; ``Chunk.to_dict()`` produces the persisted ``semantic_chunks.json``
record shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from semantic_chunker.utils import ElementValidationError, validate_chunk_options

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"}


class ElementKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class PositionInText(str, Enum):
    AFTER_SENTENCE = "after_sentence"
    CONSECUTIVE_AFTER = "consecutive_after"
    MIDDLE_PARAGRAPH = "middle_paragraph"
    # Exclusion bookkeeping only; never attached to a chunk.
    BEFORE_CHUNK = "before_chunk"


@dataclass(frozen=True)
class TextElement:
    text: str
    sequence_index: int
    tab_id: Optional[str] = None

    kind: ClassVar[ElementKind] = ElementKind.TEXT


@dataclass(frozen=True)
class ImageElement:
    """An image in the source document; ``image_ref`` is owned by the extractor."""

    image_ref: str
    sequence_index: int
    tab_id: Optional[str] = None
    label: Optional[str] = None

    kind: ClassVar[ElementKind] = ElementKind.IMAGE


DocumentElement = Union[TextElement, ImageElement]


@dataclass(frozen=True)
class ContextState:
    """Sticky jurisdiction / order-type / topic labels for one tab."""

    state: Optional[str] = None
    section: Optional[str] = None
    topic: Optional[str] = None
    tab_id: Optional[str] = None


@dataclass(frozen=True)
class ImageAttachment:
    image_ref: str
    number: int
    filename: str
    path: str
    label: Optional[str]
    context_text: str
    state: Optional[str]
    section: Optional[str]
    topic: Optional[str]
    position_in_text: PositionInText

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "path": self.path,
            "label": self.label,
            "number": self.number,
            "context_text": self.context_text,
            "state": self.state,
            "section": self.section,
            "topic": self.topic,
            "position_in_text": self.position_in_text.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageAttachment":
        filename = data["filename"]
        return cls(
            image_ref=data.get("image_ref") or filename,
            number=int(data["number"]),
            filename=filename,
            path=data.get("path") or filename,
            label=data.get("label"),
            context_text=data.get("context_text") or "",
            state=data.get("state"),
            section=data.get("section"),
            topic=data.get("topic"),
            position_in_text=PositionInText(data.get("position_in_text", PositionInText.AFTER_SENTENCE.value)),
        )


@dataclass(frozen=True)
class ChunkMetadata:
    states: Tuple[str, ...]
    sections: Tuple[str, ...]
    topics: Tuple[str, ...]
    element_count: int
    has_images: bool
    image_count: int
    char_count: int
    word_count: int
    tab_section: Optional[str]
    image_markers: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "states": list(self.states),
            "sections": list(self.sections),
            "topics": list(self.topics),
            "element_count": self.element_count,
            "has_images": self.has_images,
            "image_count": self.image_count,
            "char_count": self.char_count,
            "word_count": self.word_count,
            "tab_section": self.tab_section,
            "image_markers": self.image_markers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkMetadata":
        return cls(
            states=tuple(data.get("states") or ()),
            sections=tuple(data.get("sections") or ()),
            topics=tuple(data.get("topics") or ()),
            element_count=int(data.get("element_count", 0)),
            has_images=bool(data.get("has_images", False)),
            image_count=int(data.get("image_count", 0)),
            char_count=int(data.get("char_count", 0)),
            word_count=int(data.get("word_count", 0)),
            tab_section=data.get("tab_section"),
            image_markers=int(data.get("image_markers", 0)),
        )


@dataclass(frozen=True)
class Chunk:
    chunk_id: int
    text: str
    images: Tuple[ImageAttachment, ...]
    metadata: ChunkMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_id": self.chunk_id,
            "text": self.text,
            "images": [image.to_dict() for image in self.images],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        return cls(
            chunk_id=int(data["chunk_id"]),
            text=data.get("text") or "",
            images=tuple(ImageAttachment.from_dict(image) for image in data.get("images") or ()),
            metadata=ChunkMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class ChunkingOptions:
    """Size settings for one builder. Raises ValueError when inconsistent."""

    target_chunk_size: int = 800
    max_chunk_size: int = 1200
    overlap_size: int = 150
    min_chunk_size: int = 300
    image_path_prefix: str = "semantic_output/images"

    def __post_init__(self) -> None:
        problems = validate_chunk_options(
            self.target_chunk_size, self.max_chunk_size, self.overlap_size, self.min_chunk_size
        )
        if problems:
            raise ValueError(" ".join(problems))


@dataclass(frozen=True)
class ChunkingResult:
    chunks: List[Chunk]
    elements_processed: int
    excluded_images: int = 0
    oversized_chunks: Tuple[int, ...] = field(default_factory=tuple)


def image_filename(number: int, image_ref: str) -> str:
    suffix = PurePosixPath(image_ref or "").suffix.lower()
    if suffix not in IMAGE_EXTENSIONS:
        suffix = ".png"
    return f"image_{number}{suffix}"


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def element_from_dict(data: Any, index: int) -> DocumentElement:
    """Build one element from a JSON record; ``index`` is reported on failure."""
    if not isinstance(data, dict):
        raise ElementValidationError(index, "element must be an object.")

    kind = data.get("kind", data.get("type"))
    sequence_index = _first_present(data, "sequenceIndex", "sequence_index")
    if sequence_index is None:
        sequence_index = index
    if isinstance(sequence_index, bool) or not isinstance(sequence_index, int):
        raise ElementValidationError(index, "sequenceIndex must be an integer.")
    tab_id = _first_present(data, "tabId", "tab_id")
    if tab_id is not None:
        tab_id = str(tab_id)

    if kind == ElementKind.TEXT.value:
        text = data.get("text") or ""
        if not isinstance(text, str):
            raise ElementValidationError(index, "text must be a string.")
        return TextElement(text=text, sequence_index=sequence_index, tab_id=tab_id)
    if kind == ElementKind.IMAGE.value:
        image_ref = _first_present(data, "imageRef", "image_ref")
        if not isinstance(image_ref, str) or not image_ref.strip():
            raise ElementValidationError(index, "image elements require an imageRef.")
        label = data.get("label")
        if label is not None and not isinstance(label, str):
            raise ElementValidationError(index, "label must be a string.")
        return ImageElement(image_ref=image_ref, sequence_index=sequence_index, tab_id=tab_id, label=label)
    raise ElementValidationError(index, f"unsupported element kind {kind!r}; expected 'text' or 'image'.")


def parse_elements(records: Sequence[Any]) -> List[DocumentElement]:
    if not isinstance(records, (list, tuple)):
        raise ElementValidationError(0, "elements must be a list.")
    return [element_from_dict(record, index) for index, record in enumerate(records)]
