"""Top-level package for Text Sectioner.

Front-ends (editor UI, CLI) should only depend on the public API exposed here
rather than importing internal modules directly.
"""

from .core.models import ForestSnapshot, SectionNode
from .core.generators import serialize_sections
from .core.importers import SectionParseError, parse_sections
from .core.services import SectionEditingService

__all__: list[str] = [
    "ForestSnapshot",
    "SectionNode",
    "SectionEditingService",
    "SectionParseError",
    "parse_sections",
    "serialize_sections",
]
