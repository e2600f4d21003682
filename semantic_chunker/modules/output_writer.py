"""Local persistence of chunking results.

Layout of the output directory:

    semantic_chunks.json
    images/image_<N>.<ext>
    README.md
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from semantic_chunker.modules.models import IMAGE_EXTENSIONS, Chunk
from semantic_chunker.modules.reporting import generate_readme
from semantic_chunker.utils import ImageResolutionError

logger = logging.getLogger(__name__)

CHUNKS_FILE = "semantic_chunks.json"
IMAGES_DIR = "images"
README_FILE = "README.md"

ImageResolver = Callable[[str], bytes]


class FileImageResolver:
    """Resolve image references as paths relative to ``base_dir``."""

    def __init__(self, base_dir: str) -> None:
        self.base_dir = Path(base_dir)

    def __call__(self, image_ref: str) -> bytes:
        candidate = (self.base_dir / image_ref).resolve()
        if self.base_dir.resolve() not in candidate.parents:
            raise ImageResolutionError(image_ref, f"Image '{image_ref}' is outside {self.base_dir}.")
        if not candidate.is_file():
            raise ImageResolutionError(image_ref)
        return candidate.read_bytes()


def serialize_chunks(chunks: Sequence[Chunk]) -> str:
    return json.dumps([chunk.to_dict() for chunk in chunks], indent=2, ensure_ascii=False)


class ChunkOutputWriter:
    def __init__(self, output_dir: str) -> None:
        self.output_dir = Path(output_dir)

    @property
    def chunks_path(self) -> Path:
        return self.output_dir / CHUNKS_FILE

    @property
    def images_dir(self) -> Path:
        return self.output_dir / IMAGES_DIR

    @property
    def readme_path(self) -> Path:
        return self.output_dir / README_FILE

    def write(
        self,
        chunks: Sequence[Chunk],
        resolver: Optional[ImageResolver],
        source_name: str = "",
    ) -> Dict[str, Any]:
        """Persist chunks, their images and a README; returns what was written.

        Images are resolved before anything is written so an unresolvable
        reference leaves the previous output untouched.
        """
        images: Dict[str, bytes] = {}
        for chunk in chunks:
            for image in chunk.images:
                if resolver is None:
                    raise ImageResolutionError(image.image_ref, "No image resolver configured.")
                images[image.filename] = resolver(image.image_ref)

        self.images_dir.mkdir(parents=True, exist_ok=True)
        for stale in self.image_files():
            if stale.name not in images:
                stale.unlink()
                logger.debug("Removed stale image %s", stale)
        self.chunks_path.write_text(serialize_chunks(chunks), encoding="utf-8")
        for filename, data in images.items():
            (self.images_dir / filename).write_bytes(data)
        readme = generate_readme(chunks, source_name, output_name=self.output_dir.name)
        self.readme_path.write_text(readme, encoding="utf-8")

        logger.info("Wrote %s chunks and %s images to %s", len(chunks), len(images), self.output_dir)
        return {
            "output_path": str(self.output_dir),
            "chunks_file": CHUNKS_FILE,
            "images_folder": IMAGES_DIR,
            "images_written": sorted(images),
        }

    def has_chunks(self) -> bool:
        return self.chunks_path.is_file()

    def load_chunks(self) -> List[Chunk]:
        data = json.loads(self.chunks_path.read_text(encoding="utf-8"))
        return [Chunk.from_dict(item) for item in data]

    def image_files(self) -> List[Path]:
        if not self.images_dir.is_dir():
            return []
        return sorted(
            p for p in self.images_dir.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
        )
