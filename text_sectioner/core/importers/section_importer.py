from __future__ import annotations

"""Import ``<section>`` XML back into a section forest.

Accepts the vocabulary produced by :mod:`text_sectioner.core.generators`
plus a few common shapes found in pasted or hand-written documents:

- several top-level ``<section>`` elements (serializer output for multi-root
  forests);
- one unlabeled, text-free ``<section>`` wrapping the real roots, which is
  unwrapped;
- any other root element whose direct ``<section>`` children are the roots.

Only well-formedness is checked. Elements other than ``<section>`` are skipped
while their surrounding text is kept.
"""

import logging
import re
from typing import List, Optional

from lxml import etree as ET

from text_sectioner.core.models import ContentItem, SectionNode

logger = logging.getLogger(__name__)

__all__ = ["SectionParseError", "parse_sections"]

# Synthetic container so documents with several top-level elements parse.
_CONTAINER_TAG = "text-sectioner-document"
_XML_DECLARATION = re.compile(r"^\s*<\?xml\b[^>]*\?>", re.IGNORECASE)
_BOM = "\ufeff"


class SectionParseError(ValueError):
    """Raised when XML text cannot be turned into a section forest."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


def parse_sections(xml_text: str) -> List[SectionNode]:
    """Parse *xml_text* into a list of root :class:`SectionNode` objects.

    Empty or whitespace-only input yields an empty list. A leading byte-order
    mark is ignored.

    Raises
    ------
    SectionParseError
        If the text is not well-formed XML, has text outside any element, or
        contains no ``<section>`` element where roots are expected.
    """
    if xml_text and xml_text.startswith(_BOM):
        xml_text = xml_text[1:]
    if not xml_text or not xml_text.strip():
        return []

    container = _parse_container(xml_text)
    top_level = [el for el in container if isinstance(el.tag, str)]

    if not top_level:
        raise SectionParseError("No section elements found in XML")

    if len(top_level) > 1:
        roots = [el for el in top_level if _is_section(el)]
        if not roots:
            raise SectionParseError("No section elements found in XML")
        logger.debug("Parsed %d top-level section(s)", len(roots))
        return [_convert(el) for el in roots]

    document = top_level[0]
    if _is_section(document):
        if _is_wrapper(document):
            logger.debug("Unwrapping unlabeled wrapper section")
            return [_convert(el) for el in document if _is_section(el)]
        return [_convert(document)]

    roots = [el for el in document if _is_section(el)]
    if not roots:
        raise SectionParseError("No section elements found in XML")
    return [_convert(el) for el in roots]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_container(xml_text: str) -> ET._Element:
    body = _XML_DECLARATION.sub("", xml_text, count=1)
    # Security: no external entities, no network access
    parser = ET.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )
    try:
        container = ET.fromstring(f"<{_CONTAINER_TAG}>{body}</{_CONTAINER_TAG}>", parser)
    except ET.XMLSyntaxError as exc:
        logger.warning("XML parse failed: %s", exc)
        raise SectionParseError(f"Invalid XML: {exc}", cause=exc) from exc

    stray = [(container.text or "")] + [(el.tail or "") for el in container]
    if any(chunk.strip() for chunk in stray):
        raise SectionParseError("Invalid XML: text content outside of a root element")
    return container


def _local_name(element: ET._Element) -> str:
    return ET.QName(element).localname.lower()


def _is_section(element: ET._Element) -> bool:
    return isinstance(element.tag, str) and _local_name(element) == "section"


def _is_wrapper(element: ET._Element) -> bool:
    """A wrapper has no label, no direct text and only ``<section>`` children."""
    if element.get("label"):
        return False
    if (element.text or "").strip():
        return False
    children = [child for child in element if isinstance(child.tag, str)]
    if not children or not all(_is_section(child) for child in children):
        return False
    return not any((child.tail or "").strip() for child in element)


def _append_text(content: List[ContentItem], raw: Optional[str]) -> None:
    text = (raw or "").strip()
    if not text:
        return
    if content and isinstance(content[-1], str):
        # Text split by a skipped element reads as one run
        content[-1] = f"{content[-1]} {text}"
    else:
        content.append(text)


def _convert(element: ET._Element) -> SectionNode:
    content: List[ContentItem] = []
    _append_text(content, element.text)
    for child in element:
        if _is_section(child):
            content.append(_convert(child))
        _append_text(content, child.tail)

    if not content:
        content.append("")
    return SectionNode(label=element.get("label") or "", content=content)
