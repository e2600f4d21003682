"""Google Docs text export to element stream.

DocumentFetcher responsibilities:
- Validate Google Docs URLs and fetch the plain-text export
- Clean and normalize text
- Split the text into one TextElement per paragraph

Binary document parsing (images, tabs) is left to other extractors; the
plain-text export carries neither, so every element has the same tab id.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import requests

from semantic_chunker.modules.models import TextElement
from semantic_chunker.utils import log_error, sanitize_text, validate_google_doc_url


class DocumentFetcher:
    def __init__(self, timeout: int = 15, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_document(self, url: str) -> Dict[str, Any]:
        """Fetch plain text content from a Google Doc export endpoint.

        Returns a dict:
          {"success": bool, "error": str or None, "content": str or None, "doc_id": str or None}
        """
        try:
            v = validate_google_doc_url(url)
            if not v.get("valid"):
                return {"success": False, "error": v.get("error") or "Invalid Google Docs URL.", "content": None, "doc_id": None}

            doc_id = v.get("doc_id")
            export_url = f"https://docs.google.com/document/d/{doc_id}/export?format=txt"
            headers = {"User-Agent": "Mozilla/5.0"}

            resp = self.session.get(export_url, timeout=self.timeout, headers=headers)

            status = resp.status_code
            if status == 403:
                return {"success": False, "error": "Document is private. Make it publicly viewable.", "content": None, "doc_id": doc_id}
            if status == 404:
                return {"success": False, "error": "Document not found. Check the URL.", "content": None, "doc_id": doc_id}
            if status == 429:
                return {"success": False, "error": "Rate limited. Please wait a moment.", "content": None, "doc_id": doc_id}
            if 500 <= status <= 599:
                return {"success": False, "error": "Server error. Try again later.", "content": None, "doc_id": doc_id}
            if status != 200:
                return {"success": False, "error": f"HTTP error {status}.", "content": None, "doc_id": doc_id}

            text = resp.text or ""
            if not text.strip():
                return {"success": False, "error": "Document is empty.", "content": None, "doc_id": doc_id}

            return {"success": True, "error": None, "content": text, "doc_id": doc_id}
        except requests.Timeout as e:
            log_error(e, context={"where": "fetch_document", "url": url})
            return {"success": False, "error": "Network timeout while fetching document.", "content": None, "doc_id": None}
        except requests.ConnectionError as e:
            log_error(e, context={"where": "fetch_document", "url": url})
            return {"success": False, "error": "Network connection error while fetching document.", "content": None, "doc_id": None}
        except requests.RequestException as e:
            log_error(e, context={"where": "fetch_document", "url": url})
            return {"success": False, "error": str(e) or "Unexpected error fetching document.", "content": None, "doc_id": None}

    def clean_text(self, text: str) -> str:
        """Clean text while keeping paragraph structure.

        Steps:
        - Normalize Windows/Mac newlines
        - Remove control characters (byte-order marks included)
        - Collapse runs of spaces/tabs
        - Reduce 3+ newlines to a paragraph break
        """
        if not text:
            return ""
        base = text.replace("\r\n", "\n").replace("\r", "\n")
        base = sanitize_text(base)
        base = re.sub(r"[ \t]+", " ", base)
        base = re.sub(r"\n{3,}", "\n\n", base)
        return base.strip()

    def text_to_elements(self, text: str, tab_id: Optional[str] = None, start_index: int = 0) -> List[TextElement]:
        """One element per non-empty paragraph, in document order."""
        cleaned = self.clean_text(text)
        paragraphs = [p.strip() for p in re.split(r"\n\s*\n|\n", cleaned) if p.strip()]
        return [
            TextElement(text=paragraph, sequence_index=start_index + offset, tab_id=tab_id)
            for offset, paragraph in enumerate(paragraphs)
        ]

    def fetch_elements(self, url: str, tab_id: Optional[str] = None) -> Dict[str, Any]:
        """Fetch a Google Doc and return {"success", "error", "elements", "doc_id"}."""
        fetched = self.fetch_document(url)
        if not fetched.get("success"):
            return {"success": False, "error": fetched.get("error"), "elements": [], "doc_id": fetched.get("doc_id")}
        elements = self.text_to_elements(fetched.get("content") or "", tab_id=tab_id)
        return {"success": True, "error": None, "elements": elements, "doc_id": fetched.get("doc_id")}
