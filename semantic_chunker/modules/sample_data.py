"""Illustrative element stream used when no document is supplied.

Three operations tabs (Ohio, Maryland, New Jersey) with captioned and
uncaptioned images, mirroring the SOP layout the chunker was designed for.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from semantic_chunker.modules.models import DocumentElement, ImageElement, TextElement

SAMPLE_SOURCE_NAME = "GTI_Data_Base_and_SOP.docx"

# (tab, kind, text-or-image-ref, label)
_SAMPLE: Tuple[Tuple[str, str, str, Optional[str]], ...] = (
    ("Ohio Operations", "image", "ohio_banner.png", None),
    ("Ohio Operations", "text", "OHIO RISE ORDERS", None),
    ("Ohio Operations", "text",
     "Special pricing and delivery requirements for Ohio RISE dispensaries. "
     "Order processing follows specific guidelines for internal stores.", None),
    ("Ohio Operations", "text", "PRICING: Use special RISE pricing structure with 20% internal discount.", None),
    ("Ohio Operations", "image", "ohio_pricing_structure.png", "Ohio RISE pricing structure"),
    ("Ohio Operations", "text",
     "Always verify pricing with sales team before processing. "
     "The discount verification form shows the standard process.", None),
    ("Ohio Operations", "image", "discount_verification_form.png", "Discount verification form"),
    ("Ohio Operations", "text", "DELIVERY SCHEDULE: RISE orders are processed on Tuesdays and Thursdays.", None),
    ("Ohio Operations", "image", "delivery_schedule_template.png", None),
    ("Ohio Operations", "image", "time_slot_calendar.png", None),
    ("Ohio Operations", "text",
     "The delivery calendar shows available time slots and special requirements for internal deliveries.", None),
    ("Maryland Operations", "text", "MARYLAND REGULAR ORDERS", None),
    ("Maryland Operations", "text", "Processing guidelines for wholesale orders to Maryland dispensaries.", None),
    ("Maryland Operations", "text",
     "BATCH SUBSTITUTION: For flower products, prioritize THC percentage matching. "
     "If requested batch is unavailable, substitute within same 10% THC range.", None),
    ("Maryland Operations", "text",
     "For example, if customer requests 25% THC batch but it's out of stock, "
     "offer batches in 20-30% range.", None),
    ("Maryland Operations", "image", "thc_matching_chart.png", "THC percentage matching chart"),
    ("Maryland Operations", "text",
     "FIFO PRIORITY: For all non-flower products, follow First-In-First-Out inventory management. "
     "Oldest batches should be fulfilled first to maintain product freshness.", None),
    ("Maryland Operations", "text",
     "The inventory tracking sheet helps identify batch dates and expiration timelines.", None),
    ("Maryland Operations", "image", "inventory_tracking_sheet.png", None),
    ("Maryland Operations", "image", "batch_expiration_calendar.png", None),
    ("Maryland Operations", "text",
     "SPECIAL NOTES: Some products may have promo pricing that overrides standard wholesale rates.", None),
    ("New Jersey Operations", "text", "NEW JERSEY ORDER LIMITS", None),
    ("New Jersey Operations", "text", "Specific limitations and requirements for New Jersey market orders.", None),
    ("New Jersey Operations", "text",
     "UNIT LIMITS: Regular orders have no set unit or dollar limits. "
     "Do not break case sizes unless specifically requested by customer.", None),
    ("New Jersey Operations", "text",
     "RISE UNIT LIMITS: Internal RISE orders are limited to 4,000 units maximum per order.", None),
    ("New Jersey Operations", "image", "rise_unit_limit_calculator.png", "RISE unit limit calculator"),
    ("New Jersey Operations", "text",
     "If order exceeds 4,000 units, split into multiple orders scheduled for different delivery dates. "
     "Example calculation shown in order splitting guide.", None),
    ("New Jersey Operations", "text",
     "BATTERY SEPARATION: All battery products must be placed on separate invoices for compliance "
     "reasons. This is a GENERAL rule.", None),
    ("New Jersey Operations", "image", "battery_separation_workflow.png", None),
    ("New Jersey Operations", "image", "battery_invoice_template.png", None),
    ("New Jersey Operations", "image", "compliance_checklist.png", None),
    ("New Jersey Operations", "text", "This applies to both regular and RISE orders in New Jersey market.", None),
)


def sample_elements() -> List[DocumentElement]:
    elements: List[DocumentElement] = []
    for index, (tab, kind, value, label) in enumerate(_SAMPLE):
        if kind == "text":
            elements.append(TextElement(text=value, sequence_index=index, tab_id=tab))
        else:
            elements.append(ImageElement(image_ref=value, sequence_index=index, tab_id=tab, label=label))
    return elements


def placeholder_image(image_ref: str) -> bytes:
    """Stand-in image content for the sample stream, which ships no binaries."""
    return f"Placeholder for image {image_ref}".encode("utf-8")
