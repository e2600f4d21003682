"""Publishing chunking output to a GitHub repository via the contents API."""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from semantic_chunker.modules.output_writer import ChunkOutputWriter
from semantic_chunker.utils import PublishError, validate_github_repo

logger = logging.getLogger(__name__)


class GitHubPublisher:
    def __init__(
        self,
        token: str,
        repo: str,
        branch: str = "main",
        api_url: str = "https://api.github.com",
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not token:
            raise PublishError("GitHub token not configured. Please set GITHUB_TOKEN.", status_code=400)
        if not validate_github_repo(repo):
            raise PublishError("GitHub repository must look like 'owner/name'. Please set GITHUB_REPO.", status_code=400)
        self.repo = repo.strip()
        self.branch = branch or "main"
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
        }

    def _contents_url(self, remote_path: str) -> str:
        return f"{self.api_url}/repos/{self.repo}/contents/{remote_path.lstrip('/')}"

    def get_file_sha(self, remote_path: str) -> Optional[str]:
        """Return the blob sha of an existing file, or None when it does not exist yet."""
        try:
            resp = self.session.get(
                self._contents_url(remote_path),
                headers=self.headers,
                params={"ref": self.branch},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PublishError(f"Network error while checking {remote_path}: {e}") from e
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise PublishError(f"GitHub API error {resp.status_code} while checking {remote_path}.", resp.status_code)
        return (resp.json() or {}).get("sha")

    def upload_file(self, remote_path: str, content: bytes, message: str) -> Dict[str, Any]:
        """Create or overwrite ``remote_path`` on the configured branch."""
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        sha = self.get_file_sha(remote_path)
        if sha:
            payload["sha"] = sha

        try:
            resp = self.session.put(
                self._contents_url(remote_path),
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PublishError(f"Network error while uploading {remote_path}: {e}") from e

        status = resp.status_code
        if status not in (200, 201):
            detail = (resp.text or "")[:200]
            raise PublishError(f"GitHub API error: {status} - {detail}", status)
        logger.info("Uploaded %s to %s@%s", remote_path, self.repo, self.branch)
        return resp.json() or {}

    def publish_output(self, output_dir: str, remote_prefix: str = "semantic_output") -> Dict[str, Any]:
        """Upload the chunks JSON, every image and the README from ``output_dir``."""
        writer = ChunkOutputWriter(output_dir)
        if not writer.has_chunks():
            raise PublishError("Semantic chunks not found. Please process chunks first.", status_code=404)

        prefix = remote_prefix.strip("/")

        def remote(*parts: str) -> str:
            return "/".join(p for p in (prefix, *parts) if p)

        self.upload_file(remote(writer.chunks_path.name), writer.chunks_path.read_bytes(), "Update semantic chunks data")

        uploaded_images = 0
        for image_path in writer.image_files():
            self.upload_file(
                remote(writer.images_dir.name, image_path.name),
                image_path.read_bytes(),
                f"Update image: {image_path.name}",
            )
            uploaded_images += 1

        readme_updated = False
        readme: Path = writer.readme_path
        if readme.is_file():
            self.upload_file(remote(readme.name), readme.read_bytes(), "Update semantic chunking README")
            readme_updated = True

        return {
            "chunks_uploaded": len(writer.load_chunks()),
            "images_uploaded": uploaded_images,
            "readme_updated": readme_updated,
            "repository": self.repo,
            "branch": self.branch,
        }
