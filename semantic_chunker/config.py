from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

from semantic_chunker.utils.validators import validate_chunk_options, validate_github_repo

# Load environment variables from .env if present
load_dotenv()


def _split_origins(origins: str) -> List[str]:
    if not origins:
        return []
    return [o.strip() for o in origins.split(",") if o.strip()]


class Config:
    """Centralized configuration for the application.

    Optional keys with defaults:
      - FLASK_SECRET_KEY (must not be set to an empty value)
      - FLASK_ENV (default: "production")
      - PORT (default: 5000)
      - CORS_ORIGINS (comma-separated list)
      - LOG_LEVEL (default: "INFO")
      - TARGET_CHUNK_SIZE (default: 800)
      - MAX_CHUNK_SIZE (default: 1200)
      - OVERLAP_SIZE (default: 150)
      - MIN_CHUNK_SIZE (default: 300)
      - OUTPUT_DIR (default: "semantic_output")
      - IMAGE_SOURCE_DIR (default: "images")
      - SOURCE_DOCUMENT_NAME (default: "GTI_Data_Base_and_SOP.docx")
      - GITHUB_TOKEN, GITHUB_REPO (owner/name), GITHUB_BRANCH (default: "main")
      - GITHUB_API_URL (default: "https://api.github.com")
      - REQUEST_TIMEOUT (default: 15 seconds)
    """

    FLASK_SECRET_KEY: str = os.getenv("FLASK_SECRET_KEY", "")
    FLASK_ENV: str = os.getenv("FLASK_ENV", "production")
    PORT: int = int(os.getenv("PORT", "5000"))
    CORS_ORIGINS: List[str] = _split_origins(os.getenv("CORS_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Chunking
    TARGET_CHUNK_SIZE: int = int(os.getenv("TARGET_CHUNK_SIZE", "800"))
    MAX_CHUNK_SIZE: int = int(os.getenv("MAX_CHUNK_SIZE", "1200"))
    OVERLAP_SIZE: int = int(os.getenv("OVERLAP_SIZE", "150"))
    MIN_CHUNK_SIZE: int = int(os.getenv("MIN_CHUNK_SIZE", "300"))

    # Storage
    OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "semantic_output")
    IMAGE_SOURCE_DIR: str = os.getenv("IMAGE_SOURCE_DIR", "images")
    SOURCE_DOCUMENT_NAME: str = os.getenv("SOURCE_DOCUMENT_NAME", "GTI_Data_Base_and_SOP.docx")

    # GitHub publishing
    GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")
    GITHUB_REPO: str = os.getenv("GITHUB_REPO", "")
    GITHUB_BRANCH: str = os.getenv("GITHUB_BRANCH", "main")
    GITHUB_API_URL: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "15"))

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values.

        Raises:
            ValueError: if the secret key is set but empty, GITHUB_REPO is not
            "owner/name", or the chunk sizes are inconsistent.
        """
        if ("FLASK_SECRET_KEY" in os.environ) and (not cls.FLASK_SECRET_KEY):
            raise ValueError("FLASK_SECRET_KEY is missing or empty. Please set it in your environment or .env file.")
        if cls.GITHUB_REPO and not validate_github_repo(cls.GITHUB_REPO):
            raise ValueError("GITHUB_REPO must look like 'owner/name'.")
        problems = validate_chunk_options(
            cls.TARGET_CHUNK_SIZE, cls.MAX_CHUNK_SIZE, cls.OVERLAP_SIZE, cls.MIN_CHUNK_SIZE
        )
        if problems:
            raise ValueError("Invalid chunk configuration: " + " ".join(problems))

    @classmethod
    def github_configured(cls) -> bool:
        return bool(cls.GITHUB_TOKEN and cls.GITHUB_REPO)

    @classmethod
    def __repr__(cls) -> str:
        # Hide sensitive values in representation
        masked_token = (cls.GITHUB_TOKEN[:4] + "***") if cls.GITHUB_TOKEN else "<unset>"
        masked_secret = (cls.FLASK_SECRET_KEY[:6] + "***") if cls.FLASK_SECRET_KEY else "<unset>"
        return (
            "Config("
            f"FLASK_SECRET_KEY={masked_secret}, "
            f"FLASK_ENV={cls.FLASK_ENV}, PORT={cls.PORT}, CORS_ORIGINS={cls.CORS_ORIGINS}, "
            f"TARGET_CHUNK_SIZE={cls.TARGET_CHUNK_SIZE}, MAX_CHUNK_SIZE={cls.MAX_CHUNK_SIZE}, "
            f"OVERLAP_SIZE={cls.OVERLAP_SIZE}, MIN_CHUNK_SIZE={cls.MIN_CHUNK_SIZE}, "
            f"OUTPUT_DIR={cls.OUTPUT_DIR}, GITHUB_TOKEN={masked_token}, "
            f"GITHUB_REPO={cls.GITHUB_REPO}, GITHUB_BRANCH={cls.GITHUB_BRANCH}"
            ")"
        )


config = Config()
# Validate at import time so misconfiguration fails fast
Config.validate()
