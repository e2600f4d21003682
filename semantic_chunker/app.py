import logging
import os
from datetime import datetime

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS

from semantic_chunker.config import Config
from semantic_chunker.modules.chunk_builder import ChunkBuilder
from semantic_chunker.modules.doc_fetcher import DocumentFetcher
from semantic_chunker.modules.github_publisher import GitHubPublisher
from semantic_chunker.modules.models import ChunkingOptions, parse_elements
from semantic_chunker.modules.output_writer import ChunkOutputWriter, FileImageResolver
from semantic_chunker.modules.reporting import compute_statistics
from semantic_chunker.modules.sample_data import SAMPLE_SOURCE_NAME, placeholder_image, sample_elements
from semantic_chunker.utils import (
    DocumentFetchError,
    ImageResolutionError,
    PublishError,
    coerce_int,
    handle_api_error,
    log_error,
    register_error_handlers,
    validate_chunk_options,
)

# Load environment variables from .env if present
load_dotenv()

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s",
)

app = Flask(__name__)

CORS(
    app,
    origins=getattr(Config, "CORS_ORIGINS", ["*"]),
    methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.config["SECRET_KEY"] = getattr(Config, "FLASK_SECRET_KEY", "") or os.getenv("FLASK_SECRET_KEY", "dev-secret")
app.config["OUTPUT_DIR"] = Config.OUTPUT_DIR
app.config["IMAGE_SOURCE_DIR"] = Config.IMAGE_SOURCE_DIR

register_error_handlers(app)

doc_fetcher = DocumentFetcher(timeout=Config.REQUEST_TIMEOUT)


def _output_writer() -> ChunkOutputWriter:
    return ChunkOutputWriter(app.config["OUTPUT_DIR"])


def _github_publisher() -> GitHubPublisher:
    return GitHubPublisher(
        token=Config.GITHUB_TOKEN,
        repo=Config.GITHUB_REPO,
        branch=Config.GITHUB_BRANCH,
        api_url=Config.GITHUB_API_URL,
        timeout=Config.REQUEST_TIMEOUT,
    )


def _read_options(data):
    """Build ChunkingOptions from request fields; returns (options, errors)."""
    raw = {
        "target_chunk_size": data.get("chunkSize", Config.TARGET_CHUNK_SIZE),
        "max_chunk_size": data.get("maxChunkSize", Config.MAX_CHUNK_SIZE),
        "overlap_size": data.get("overlapSize", Config.OVERLAP_SIZE),
        "min_chunk_size": data.get("minChunkSize", Config.MIN_CHUNK_SIZE),
    }
    values = {}
    errors = []
    for name, value in raw.items():
        parsed = coerce_int(value)
        if parsed is None:
            errors.append(f"{name} must be an integer.")
        values[name] = parsed
    if errors:
        return None, errors
    errors = validate_chunk_options(**values)
    if errors:
        return None, errors
    prefix = f"{os.path.basename(os.path.normpath(app.config['OUTPUT_DIR']))}/images"
    return ChunkingOptions(image_path_prefix=prefix, **values), []


@app.route("/health", methods=["GET"])
def health_check():
    """Health check and status endpoint."""
    writer = _output_writer()
    return jsonify({
        "status": "healthy",
        "chunks_available": writer.has_chunks(),
        "github_configured": Config.github_configured(),
        "timestamp": datetime.now().isoformat()
    }), 200


@app.route("/api/semantic-chunking", methods=["POST"])
def semantic_chunking():
    """Build semantic chunks from elements, a Google Doc, or the sample dataset, then persist them."""
    try:
        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 400
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        options, errors = _read_options(data)
        if errors:
            return jsonify({"error": " ".join(errors), "type": "invalid_options"}), 400

        publish = bool(data.get("publish"))
        if publish and not Config.github_configured():
            return jsonify({
                "error": "GitHub credentials not configured. Please set GITHUB_TOKEN and GITHUB_REPO environment variables."
            }), 400

        doc_url = (data.get("doc_url") or "").strip()
        if "elements" in data:
            if not isinstance(data["elements"], list):
                return jsonify({"error": "elements must be a list"}), 400
            elements = parse_elements(data["elements"])
            resolver = FileImageResolver(app.config["IMAGE_SOURCE_DIR"])
            source_name = data.get("source_name") or "request elements"
        elif doc_url:
            fetched = doc_fetcher.fetch_elements(doc_url)
            if not fetched.get("success"):
                raise DocumentFetchError(fetched.get("error") or "Failed to fetch document.", status_code=400)
            elements = fetched["elements"]
            resolver = None
            source_name = doc_url
        else:
            elements = sample_elements()
            resolver = placeholder_image
            source_name = Config.SOURCE_DOCUMENT_NAME or SAMPLE_SOURCE_NAME

        result = ChunkBuilder(options).build_with_report(elements)
        written = _output_writer().write(result.chunks, resolver, source_name=source_name)

        statistics = compute_statistics(result.chunks, result.elements_processed)
        statistics["excluded_images"] = result.excluded_images
        statistics["oversized_chunks"] = list(result.oversized_chunks)

        response = {
            "success": True,
            "message": "Document processed successfully",
            "statistics": statistics,
            "output_path": written["output_path"],
            "chunks_file": written["chunks_file"],
            "images_folder": written["images_folder"],
            "chunks": [chunk.to_dict() for chunk in result.chunks],
        }

        if publish:
            response["github"] = _github_publisher().publish_output(app.config["OUTPUT_DIR"])
            response["message"] = "Document processed and uploaded to GitHub successfully"

        return jsonify(response), 200
    except DocumentFetchError as e:
        log_error(e, {"endpoint": "/api/semantic-chunking"})
        return jsonify(handle_api_error(e)), e.status_code
    except ImageResolutionError as e:
        log_error(e, {"endpoint": "/api/semantic-chunking"})
        return jsonify(handle_api_error(e)), 400
    except PublishError as e:
        log_error(e, {"endpoint": "/api/semantic-chunking"})
        return jsonify(handle_api_error(e)), 502


@app.route("/api/chunks", methods=["GET"])
def get_chunks():
    """Return the persisted chunk list."""
    writer = _output_writer()
    if not writer.has_chunks():
        return jsonify({"error": "Semantic chunks not found. Please process chunks first."}), 404
    chunks = writer.load_chunks()
    return jsonify({"chunks": [chunk.to_dict() for chunk in chunks], "total_chunks": len(chunks)}), 200


@app.route("/api/upload-chunks-github", methods=["POST"])
def upload_chunks_github():
    """Publish the output directory to the configured GitHub repository."""
    if not Config.github_configured():
        return jsonify({
            "error": "GitHub token not configured. Please set GITHUB_TOKEN and GITHUB_REPO environment variables."
        }), 400
    if not _output_writer().has_chunks():
        return jsonify({"error": "Semantic chunks not found. Please process chunks first."}), 404
    try:
        details = _github_publisher().publish_output(app.config["OUTPUT_DIR"])
        return jsonify({
            "success": True,
            "message": "Successfully uploaded to GitHub",
            "details": details
        }), 200
    except PublishError as e:
        log_error(e, {"endpoint": "/api/upload-chunks-github"})
        return jsonify(handle_api_error(e)), 502


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=Config.PORT)
