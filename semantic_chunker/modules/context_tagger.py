"""Jurisdiction / order-type / topic detection for the element stream.

The tagger is a pure step function ``(element, prior) -> (state, labels)``
so the builder can fold it over the document. Context is sticky: a field
keeps its value until a later element matches a new code in the same
category, and every field resets when the element's tab differs from the
tab the prior context belongs to. Within one element the last match (by
position in the text) wins for each category.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Optional, Pattern, Sequence, Tuple

from semantic_chunker.modules.models import ContextState, DocumentElement, TextElement

KeywordTable = Sequence[Tuple[str, Pattern[str]]]

JURISDICTIONS: KeywordTable = (
    ("OH", re.compile(r"\bOH\b|\b(?i:ohio)\b")),
    ("MD", re.compile(r"\bMD\b|\b(?i:maryland)\b")),
    ("NJ", re.compile(r"\bNJ\b|\b(?i:new\s+jersey)\b")),
    ("IL", re.compile(r"\bIL\b|\b(?i:illinois)\b")),
    ("NY", re.compile(r"\bNY\b|\b(?i:new\s+york)\b")),
    ("NV", re.compile(r"\bNV\b|\b(?i:nevada)\b")),
    ("MA", re.compile(r"\bMA\b|\b(?i:massachusetts)\b")),
)

# RISE is matched in upper case only; "rise" is an ordinary English verb.
ORDER_TYPES: KeywordTable = (
    ("RISE", re.compile(r"\bRISE\b|\b(?i:internal)\b")),
    ("REGULAR", re.compile(r"\b(?i:regular|wholesale)\b")),
    ("GENERAL", re.compile(r"\b(?i:general)\b")),
)

TOPICS: KeywordTable = (
    ("PRICING", re.compile(r"\b(?i:pric(?:e|es|ing)|discounts?)\b")),
    ("BATTERIES", re.compile(r"\b(?i:batter(?:y|ies))\b")),
    ("BATCH_SUB", re.compile(r"\b(?i:batch\s+substitutions?|substitut\w*)")),
    ("DELIVERY_DATE", re.compile(r"\b(?i:deliver(?:y|ies)|delivery\s+dates?)\b")),
    ("ORDER_LIMIT", re.compile(r"\b(?i:(?:order|unit)\s+limits?|limits?)\b")),
    ("FIFO", re.compile(r"\b(?i:fifo|first-in-first-out)\b")),
)


class ContextTagger:
    def __init__(
        self,
        jurisdictions: Optional[KeywordTable] = None,
        order_types: Optional[KeywordTable] = None,
        topics: Optional[KeywordTable] = None,
    ) -> None:
        self.jurisdictions = tuple(jurisdictions if jurisdictions is not None else JURISDICTIONS)
        self.order_types = tuple(order_types if order_types is not None else ORDER_TYPES)
        self.topics = tuple(topics if topics is not None else TOPICS)

    def tag(self, element: DocumentElement, prior: ContextState) -> Tuple[ContextState, List[str]]:
        """Return the context after ``element`` and the codes it matched, in scan order."""
        state = prior
        if element.tab_id != prior.tab_id:
            state = ContextState(tab_id=element.tab_id)

        if not isinstance(element, TextElement) or not element.text:
            return state, []

        jurisdiction, found_j = self._scan(element.text, self.jurisdictions)
        order_type, found_o = self._scan(element.text, self.order_types)
        topic, found_t = self._scan(element.text, self.topics)

        updates = {}
        if jurisdiction is not None:
            updates["state"] = jurisdiction
        if order_type is not None:
            updates["section"] = order_type
        if topic is not None:
            updates["topic"] = topic
        if updates:
            state = replace(state, **updates)

        found = sorted(found_j + found_o + found_t)
        return state, [code for _, _, code in found]

    @staticmethod
    def _scan(text: str, table: KeywordTable) -> Tuple[Optional[str], List[Tuple[int, int, str]]]:
        found: List[Tuple[int, int, str]] = []
        for code, pattern in table:
            for match in pattern.finditer(text):
                found.append((match.start(), match.end(), code))
        if not found:
            return None, found
        last = max(found, key=lambda item: (item[0], item[1]))
        return last[2], found


_DEFAULT_TAGGER = ContextTagger()


def tag(element: DocumentElement, prior: ContextState) -> Tuple[ContextState, List[str]]:
    return _DEFAULT_TAGGER.tag(element, prior)
