import pytest

pytest.importorskip("lxml")

from text_sectioner.core.generators import serialize_sections
from text_sectioner.core.importers import SectionParseError, parse_sections
from text_sectioner.core.models import SectionNode


def _shape(nodes):
    """Labels and content without ids, for structural comparison."""
    result = []
    for n in nodes:
        content = [item if isinstance(item, str) else _shape([item])[0] for item in n.content]
        result.append((n.label, content))
    return result


class TestParseSections:

    def test_simple_section(self):
        nodes = parse_sections("<section>Hello World</section>")
        assert len(nodes) == 1
        assert nodes[0].label == ""
        assert nodes[0].content == ["Hello World"]

    def test_section_with_label(self):
        nodes = parse_sections('<section label="Chapter 1">Content</section>')
        assert nodes[0].label == "Chapter 1"
        assert nodes[0].content == ["Content"]

    def test_nested_sections(self):
        xml = """<section label="Parent">
        Parent text
        <section label="Child">Child text</section>
      </section>"""
        nodes = parse_sections(xml)

        assert len(nodes) == 1
        parent = nodes[0]
        assert parent.label == "Parent"
        assert len(parent.content) == 2
        assert parent.content[0] == "Parent text"
        child = parent.content[1]
        assert isinstance(child, SectionNode)
        assert child.label == "Child"
        assert child.content == ["Child text"]

    def test_unwraps_wrapper_root(self):
        nodes = parse_sections("<section><section>First</section><section>Second</section></section>")
        assert [n.content for n in nodes] == [["First"], ["Second"]]

    def test_unwraps_indented_wrapper(self):
        xml = "<section>\n  <section>First</section>\n  <section>Second</section>\n</section>"
        assert [n.content for n in parse_sections(xml)] == [["First"], ["Second"]]

    def test_labeled_root_is_not_unwrapped(self):
        nodes = parse_sections('<section label="Root"><section>Child</section></section>')
        assert len(nodes) == 1
        assert nodes[0].label == "Root"
        assert len(nodes[0].children()) == 1

    def test_root_with_text_is_not_unwrapped(self):
        xml = "<section>\n  Root text\n  <section>Child</section>\n</section>"
        nodes = parse_sections(xml)
        assert len(nodes) == 1
        assert nodes[0].content[0] == "Root text"
        assert len(nodes[0].content) == 2

    def test_unescapes_entities(self):
        nodes = parse_sections("<section>Text with &lt;tag&gt; &amp; &quot;quotes&quot;</section>")
        assert nodes[0].content == ['Text with <tag> & "quotes"']

    def test_unescapes_label(self):
        nodes = parse_sections('<section label="A &amp; &quot;B&quot;">x</section>')
        assert nodes[0].label == 'A & "B"'

    @pytest.mark.parametrize("blank", ["", "   ", "\n\t\n"])
    def test_blank_input_yields_empty_forest(self, blank):
        assert parse_sections(blank) == []

    @pytest.mark.parametrize("bad", [
        "<section>Unclosed",
        "<section><section>Mismatched</section>",
        "<section>a</other>",
        "not xml at all",
        "<section>ok</section> trailing text",
    ])
    def test_malformed_input_raises(self, bad):
        with pytest.raises(SectionParseError):
            parse_sections(bad)

    def test_parse_error_keeps_cause(self):
        with pytest.raises(SectionParseError) as info:
            parse_sections("<section>Unclosed")
        assert info.value.cause is not None

    def test_generic_container(self):
        xml = "<root>\n  <section>First</section>\n  <section>Second</section>\n</root>"
        assert [n.content for n in parse_sections(xml)] == [["First"], ["Second"]]

    def test_container_without_sections_raises(self):
        with pytest.raises(SectionParseError, match="No section elements"):
            parse_sections("<root><para>text</para></root>")

    def test_multiple_top_level_sections(self):
        nodes = parse_sections("<section>First</section>\n<section>Second</section>")
        assert [n.content for n in nodes] == [["First"], ["Second"]]

    def test_xml_declaration_is_accepted(self):
        nodes = parse_sections('<?xml version="1.0" encoding="UTF-8"?>\n<section>Hi</section>')
        assert nodes[0].content == ["Hi"]

    @pytest.mark.parametrize("prefix", ["\ufeff", "\ufeff<?xml version=\"1.0\"?>\n"])
    def test_leading_byte_order_mark_is_ignored(self, prefix):
        nodes = parse_sections(prefix + "<section>A</section>")
        assert [n.content for n in nodes] == [["A"]]

    def test_empty_section_gets_editable_run(self):
        nodes = parse_sections('<section label="Empty"></section>')
        assert nodes[0].content == [""]

    def test_self_closing_section_is_not_a_wrapper(self):
        nodes = parse_sections("<section/>")
        assert len(nodes) == 1
        assert nodes[0].content == [""]

    def test_foreign_elements_are_skipped_but_text_kept(self):
        nodes = parse_sections("<section>before <b>bold</b> after<!-- note --></section>")
        assert nodes[0].content == ["before after"]

    def test_tag_match_is_case_insensitive(self):
        nodes = parse_sections("<root><SECTION>Upper</SECTION></root>")
        assert nodes[0].content == ["Upper"]

    def test_ids_are_unique_across_parses(self):
        first = parse_sections("<section>a<section>b</section></section>")
        second = parse_sections("<section>a<section>b</section></section>")
        ids = [n.id for tree in first + second for n in tree.depth_first()]
        assert len(ids) == len(set(ids))


class TestRoundTrip:

    def test_multi_root_forest_round_trips(self, node):
        forest = [
            node("Intro", node("Details", label="D"), "Outro", label="A"),
            node("Second root"),
            node("Third", node("x", node("deep")), label="C"),
        ]
        parsed = parse_sections(serialize_sections(forest))
        assert _shape(parsed) == _shape(forest)

    def test_single_labeled_root_round_trips(self, node):
        forest = [node("Root", node("Child"), label="R")]
        assert _shape(parse_sections(serialize_sections(forest))) == _shape(forest)

    def test_special_characters_round_trip(self, node):
        forest = [node('5 < 6 & "seven" > 4', label='a "b" & c')]
        assert _shape(parse_sections(serialize_sections(forest))) == _shape(forest)

    def test_single_unlabeled_textless_root_is_unwrapped(self, node):
        forest = [node(node("First"), node("Second"))]
        parsed = parse_sections(serialize_sections(forest))
        assert [n.content for n in parsed] == [["First"], ["Second"]]

    def test_serializing_parsed_output_is_stable(self):
        xml = '<section label="R">\n  Root\n  <section>Child</section></section>'
        assert serialize_sections(parse_sections(xml)) == xml

    def test_runs_around_omitted_child_share_one_line(self, node):
        xml = serialize_sections([node("x", node(""), "y", node("child"))])
        parsed = parse_sections(xml)
        assert parsed[0].content[0] == "x y"
        assert serialize_sections(parsed) == xml
