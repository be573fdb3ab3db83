from __future__ import annotations

"""Output generators for the section forest.

Key components:
- serialize_sections: renders the forest as indented ``<section>`` XML
"""

from .section_xml import DEFAULT_INDENT, render_section, serialize_sections

__all__ = ["DEFAULT_INDENT", "render_section", "serialize_sections"]
