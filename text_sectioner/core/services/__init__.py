from __future__ import annotations

"""High-level orchestration services.

Services are UI-agnostic and instantiated directly by front-ends.
"""

from .section_editing_service import SectionEditingService  # noqa: F401

__all__: list[str] = [
    "SectionEditingService",
]
