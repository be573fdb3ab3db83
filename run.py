# -*- coding: utf-8 -*-

"""
Command-line entry point for Text Sectioner.

Reads a ``<section>`` XML document, loads it into an editing session and writes
back the normalized serialization (or a plain outline of the sections).
"""

import argparse
import logging
import sys
from pathlib import Path

from text_sectioner.config import ConfigManager
from text_sectioner.core.generators import DEFAULT_INDENT, serialize_sections
from text_sectioner.core.importers import SectionParseError
from text_sectioner.core.services import SectionEditingService
from text_sectioner.logging_config import setup_logging

logger = logging.getLogger("text_sectioner.run")


def parse_args(args=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="text-sectioner",
        description="Normalize or outline a <section> XML document",
    )
    parser.add_argument("input", help="XML file to read ('-' for stdin)")
    parser.add_argument("-o", "--output", help="Write the result to this file instead of stdout")
    parser.add_argument(
        "--outline",
        action="store_true",
        help="Print an indented outline of labels and text instead of XML",
    )
    return parser.parse_args(args)


def render_outline(service: SectionEditingService) -> str:
    """Return one line per section: indentation, label in brackets, own text."""
    lines = []

    def walk(node, depth):
        text = " ".join(run.strip() for run in node.text_runs() if run.strip())
        label = f"[{node.label}] " if node.label else ""
        lines.append(f"{'  ' * depth}{label}{text}".rstrip())
        for child in node.children():
            walk(child, depth + 1)

    for root in service.roots:
        walk(root, 0)
    return "\n".join(lines)


def configured_indent() -> str:
    """Return ``serializer.indent`` from editor.yml, or the default indent."""
    value = ConfigManager().get_editor_config().get("serializer", {}).get("indent")
    return value if isinstance(value, str) else DEFAULT_INDENT


def main(argv=None) -> int:
    """
    Configure logging, load the document, and emit the requested rendering.
    """
    options = parse_args(argv)
    setup_logging()

    try:
        if options.input == "-":
            xml_text = sys.stdin.read()
        else:
            xml_text = Path(options.input).read_text(encoding="utf-8-sig")
    except OSError as exc:
        logger.error("Cannot read %s: %s", options.input, exc)
        return 1

    service = SectionEditingService()
    try:
        service.load_xml(xml_text)
    except SectionParseError as exc:
        logger.error("Cannot parse %s: %s", options.input, exc)
        return 1

    if options.outline:
        result = render_outline(service)
    else:
        result = serialize_sections(service.roots, indent=configured_indent())
    if options.output:
        Path(options.output).write_text(result + "\n", encoding="utf-8")
        logger.info("Wrote %s", options.output)
    else:
        print(result)
    return 0


if __name__ == '__main__':
    sys.exit(main())
