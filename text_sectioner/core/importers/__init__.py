from __future__ import annotations

"""Import functionality for section documents.

Key components:
- parse_sections: converts ``<section>`` XML text into a section forest
- SectionParseError: raised for malformed or section-free documents
"""

from .section_importer import SectionParseError, parse_sections

__all__ = ["SectionParseError", "parse_sections"]
