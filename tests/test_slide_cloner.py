"""
Tests for cloning template slides.
"""

from proflow.models.rich_text import TextRun
from proflow.services import rtf_codec
from proflow.services.document_diff import diff
from proflow.services.identifiers import iter_node_identifiers
from proflow.services.slide_cloner import SlideCloner, base_run, text_elements


def _template_slide(document):
    return document.cues[0].actions[0].slide.presentation


class TestSlideCloner:
    """Tests for SlideCloner.clone."""

    def test_only_text_changes(self, template_document, identifiers):
        """Apart from identifiers, only the body text payload differs."""
        template = _template_slide(template_document)
        blocks = [[TextRun("15", superscript=True), TextRun("For God so loved the world")]]
        cloned = SlideCloner(identifiers).clone(template, blocks)

        mismatches = diff(template, cloned)
        assert [m.path for m in mismatches] == ["base_slide.element[1].element.text.rtf_data"]

    def test_template_style_preserved(self, template_document, identifiers):
        """The cloned text keeps the template prolog, color reference and size."""
        template = _template_slide(template_document)
        blocks = [[TextRun("15", superscript=True), TextRun("For God so loved the world")]]
        cloned = SlideCloner(identifiers).clone(template, blocks)

        body = text_elements(cloned.base_slide)[0]
        original = rtf_codec.decode(text_elements(template.base_slide)[0].text.rtf_data)
        rich = rtf_codec.decode(body.text.rtf_data)
        assert rich.prolog == original.prolog
        assert "\\cf2" in rich.prolog
        assert rich.base == original.base
        assert rich.runs == [TextRun("15", superscript=True), TextRun("For God so loved the world")]

    def test_template_not_modified(self, template_document, identifiers):
        """Cloning leaves the template untouched."""
        template = _template_slide(template_document)
        before = rtf_codec.rtf_to_text(text_elements(template.base_slide)[0].text.rtf_data)
        SlideCloner(identifiers).clone(template, [[TextRun("New text")]])
        after = rtf_codec.rtf_to_text(text_elements(template.base_slide)[0].text.rtf_data)
        assert before == after == "Placeholder text"

    def test_fresh_identifiers(self, template_document, identifiers):
        """The slide and every element get new identifiers."""
        template = _template_slide(template_document)
        cloned = SlideCloner(identifiers).clone(template, [[TextRun("x")]])
        old = set(iter_node_identifiers(template))
        new = list(iter_node_identifiers(cloned))
        assert len(new) == 4
        assert len(set(new)) == len(new)
        assert not old & set(new)

    def test_build_order_remapped(self, template_document, identifiers):
        """The build order refers to the cloned elements, in the same order."""
        template = _template_slide(template_document)
        cloned = SlideCloner(identifiers).clone(template, [[TextRun("x")]])
        slide = cloned.base_slide
        assert slide.element_build_order == [se.element.uuid for se in slide.elements]

    def test_captions_fill_later_elements(self, template_document, identifiers):
        """A second block goes into the caption element with its own style."""
        template = _template_slide(template_document)
        cloned = SlideCloner(identifiers).clone(template, [[TextRun("Body")], [TextRun("John 3:16")]])
        caption = rtf_codec.decode(text_elements(cloned.base_slide)[1].text.rtf_data)
        assert caption.plain_text == "John 3:16"
        assert caption.runs[0].italic

    def test_extra_elements_keep_placeholder(self, template_document, identifiers):
        """Text elements without a block keep their text."""
        template = _template_slide(template_document)
        cloned = SlideCloner(identifiers).clone(template, [[TextRun("Body")]])
        caption = text_elements(cloned.base_slide)[1]
        assert rtf_codec.rtf_to_text(caption.text.rtf_data) == "Reference"

    def test_base_run_skips_superscript(self):
        """New text takes the style of the first non-superscript run."""
        rich = rtf_codec.decode(r"{\rtf1\ansi\fs40 {\super 1}{\b text}}")
        assert base_run(rich) == TextRun("", bold=True)
