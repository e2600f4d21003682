"""
Core modules for the semantic chunker.

This package contains:
- models: element, context and chunk records
- context_tagger: jurisdiction / order-type / topic detection
- chunk_builder: chunk boundaries, overlap and image placement
- metadata: per-chunk metadata aggregation
- reporting: document statistics and README generation
- output_writer: local persistence of chunks and images
- github_publisher: publishing output through the GitHub contents API
- doc_fetcher: Google Docs text export to element stream

Usage:
    from semantic_chunker.modules import ChunkBuilder, ChunkingOptions
"""

from .models import (
    Chunk,
    ChunkingOptions,
    ContextState,
    ImageElement,
    TextElement,
    parse_elements,
)
from .context_tagger import ContextTagger
from .chunk_builder import ChunkBuilder
from .output_writer import ChunkOutputWriter, FileImageResolver
from .github_publisher import GitHubPublisher
from .doc_fetcher import DocumentFetcher

__all__ = [
    'Chunk',
    'ChunkingOptions',
    'ContextState',
    'ImageElement',
    'TextElement',
    'parse_elements',
    'ContextTagger',
    'ChunkBuilder',
    'ChunkOutputWriter',
    'FileImageResolver',
    'GitHubPublisher',
    'DocumentFetcher',
]

__version__ = '1.0.0'
