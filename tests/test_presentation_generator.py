"""
Tests for presentation generation.
"""

from collections import Counter

import pytest

from proflow.errors import TemplateInvalidError, TemplateNotFoundError
from proflow.models import ActionType, Document
from proflow.models.template_type import TemplateType
from proflow.services import container_codec, rtf_codec
from proflow.services.document_diff import diff
from proflow.services.identifiers import iter_node_identifiers
from proflow.services.presentation_generator import (
    GenerationRequest,
    PresentationGenerator,
    find_template_action,
    group_color,
)
from proflow.services.slide_cloner import text_elements
from proflow.services.template_cache import TemplateCache

JOHN_3 = "¹⁵For God so loved the world ¹⁶that he gave his only Son"

LYRICS = """[Verse 1]
Amazing grace how sweet the sound
That saved a wretch like me

[Chorus]
My chains are gone
I've been set free
"""


def _body_runs(document: Document, cue_index: int):
    slide = document.cues[cue_index].actions[0].slide.presentation.base_slide
    return rtf_codec.decode(text_elements(slide)[0].text.rtf_data).runs


def _played_text(document: Document):
    """Body text of every slide, in the order the selected arrangement plays them."""
    arrangement = next(a for a in document.arrangements if a.uuid == document.selected_arrangement)
    groups = {g.group.uuid: g for g in document.cue_groups}
    cues = {cue.uuid: cue for cue in document.cues}
    played = []
    for group_id in arrangement.group_identifiers:
        for cue_id in groups[group_id].cue_identifiers:
            slide = cues[cue_id].actions[0].slide.presentation.base_slide
            played.append(rtf_codec.rtf_to_text(text_elements(slide)[0].text.rtf_data))
    return played


class TestGenerate:
    """Tests for PresentationGenerator.generate."""

    def test_scripture(self, generator):
        """Scripture becomes one slide with superscript verse numbers."""
        request = GenerationRequest.from_text("John 3:15-16", TemplateType.SCRIPTURE, JOHN_3)
        document = generator.generate(request)

        assert document.name == "John 3:15-16"
        assert len(document.cues) == 1
        runs = _body_runs(document, 0)
        assert [run.text for run in runs if run.superscript] == ["15", "16"]
        assert all(run.size is None and not run.bold for run in runs)

    def test_scripture_without_superscript_numbers(self, generator, settings):
        """The superscript_verse_numbers setting turns verse numbers into plain text."""
        settings.superscript_verse_numbers = False
        request = GenerationRequest.from_text("John 3:15-16", TemplateType.SCRIPTURE, JOHN_3,
                                              settings=settings)
        runs = _body_runs(generator.generate(request), 0)
        assert not any(run.superscript for run in runs)
        assert "".join(run.text for run in runs).startswith("15 For God")

    def test_slide_style_matches_template(self, generator, cache):
        """Generated slides differ from the template slide only in their text."""
        request = GenerationRequest.from_text("John 3", TemplateType.SCRIPTURE, JOHN_3)
        document = generator.generate(request)
        template = cache.get(TemplateType.SCRIPTURE)

        expected = template.cues[0].actions[0].slide.presentation
        actual = document.cues[0].actions[0].slide.presentation
        assert [m.path for m in diff(expected, actual)] == [
            "base_slide.element[1].element.text.rtf_data"
        ]

    def test_captions(self, generator):
        """Captions fill the second text element of every slide."""
        request = GenerationRequest.from_text("John 3", TemplateType.SCRIPTURE, JOHN_3,
                                              captions=["John 3:15-16"])
        document = generator.generate(request)
        slide = document.cues[0].actions[0].slide.presentation.base_slide
        assert rtf_codec.rtf_to_text(text_elements(slide)[1].text.rtf_data) == "John 3:15-16"

    def test_identifiers_are_unique(self, generator, cache):
        """No identifier repeats within or across documents, or with the template."""
        first = generator.generate(GenerationRequest.from_text("A", TemplateType.SONG, LYRICS))
        second = generator.generate(GenerationRequest.from_text("B", TemplateType.SONG, LYRICS))
        template = cache.get(TemplateType.SONG)

        identifiers = (
            list(iter_node_identifiers(first))
            + list(iter_node_identifiers(second))
            + list(iter_node_identifiers(template))
        )
        duplicates = [value for value, count in Counter(identifiers).items() if count > 1]
        assert duplicates == []

    def test_song_groups_and_arrangement(self, generator):
        """Stanza labels become cue names, groups and the arrangement order."""
        document = generator.generate(GenerationRequest.from_text("Grace", TemplateType.SONG, LYRICS))

        assert [cue.name for cue in document.cues] == ["Verse 1", "Chorus"]
        names = [cue_group.group.name for cue_group in document.cue_groups]
        assert names == ["Verse 1", "Chorus"]
        assert document.cue_groups[0].cue_identifiers == [document.cues[0].uuid]
        assert document.cue_groups[1].group.color == group_color("Chorus")

        arrangement = document.arrangements[0]
        assert arrangement.name == "Default"
        assert document.selected_arrangement == arrangement.uuid
        assert arrangement.group_identifiers == [g.group.uuid for g in document.cue_groups]

    def test_unlabelled_content_uses_template_group(self, generator):
        """Without labels all cues share one group copied from the template."""
        document = generator.generate(
            GenerationRequest.from_text("Notices", TemplateType.INFO, "Welcome\nCoffee"))
        assert len(document.cue_groups) == 1
        assert document.cue_groups[0].group.name == "Template"
        assert len(document.cue_groups[0].cue_identifiers) == len(document.cues)

    def test_repeated_label_plays_in_order(self, generator):
        """A repeated stanza label gets its own group; the arrangement plays stanzas in order."""
        lyrics = "[Chorus]\nAAA\n\n[Verse 2]\nBBB\n\n[Chorus]\nCCC\n"
        document = generator.generate(GenerationRequest.from_text("Song", TemplateType.SONG, lyrics))

        assert _played_text(document) == ["AAA", "BBB", "CCC"]
        assert [g.group.name for g in document.cue_groups] == ["Chorus", "Verse 2", "Chorus"]
        order = document.arrangements[0].group_identifiers
        assert len(set(order)) == len(order) == 3

    def test_unlabelled_stanzas_around_labelled_one(self, generator):
        """Unlabelled stanzas separated by a labelled one keep their order."""
        lyrics = "AAA\n\nBBB\n\n[Bridge]\nCCC\n\nDDD\n"
        document = generator.generate(GenerationRequest.from_text("Song", TemplateType.SONG, lyrics))

        assert _played_text(document) == ["AAA", "BBB", "CCC", "DDD"]
        assert [g.group.name for g in document.cue_groups] == [
            "Template", "Template", "Bridge", "Template"
        ]

    def test_one_presentation_slide_per_cue(self, generator):
        """Every cue carries exactly one presentation slide action."""
        document = generator.generate(GenerationRequest.from_text("Grace", TemplateType.SONG, LYRICS))
        for cue in document.cues:
            types = [action.type for action in cue.actions]
            assert types.count(ActionType.PRESENTATION_SLIDE) == 1

    def test_document_round_trips(self, generator):
        """A generated document encodes and decodes to an equal tree."""
        document = generator.generate(GenerationRequest.from_text("Grace", TemplateType.SONG, LYRICS))
        assert container_codec.decode(container_codec.encode(document)) == document

    def test_empty_text(self, generator):
        """A request without text is rejected."""
        with pytest.raises(ValueError):
            generator.generate(GenerationRequest.from_text("Empty", TemplateType.INFO, "  \n"))

    def test_missing_template(self, temp_dir, settings, identifiers):
        """Generating without a template names the expected file."""
        generator = PresentationGenerator(TemplateCache([str(temp_dir)]), settings, identifiers)
        with pytest.raises(TemplateNotFoundError, match="__template_song__.pro"):
            generator.generate(GenerationRequest.from_text("Grace", TemplateType.SONG, LYRICS))

    def test_template_without_slides(self, temp_dir, settings, identifiers, template_document):
        """A template with no presentation slide is invalid."""
        template_document.cues = []
        cache = TemplateCache([str(temp_dir)])
        cache.load_from_bytes(TemplateType.INFO, container_codec.encode(template_document))
        generator = PresentationGenerator(cache, settings, identifiers)
        with pytest.raises(TemplateInvalidError):
            generator.generate(GenerationRequest.from_text("Notices", TemplateType.INFO, "Welcome"))


class TestWrite:
    """Tests for writing generated documents."""

    def test_write(self, generator, temp_dir):
        """The written file decodes to the generated document."""
        path = temp_dir / "grace.pro"
        result = generator.write(GenerationRequest.from_text("Grace", TemplateType.SONG, LYRICS), str(path))
        assert result.slide_count == 2
        assert result.size == path.stat().st_size
        assert container_codec.read_document(str(path)) == result.document


class TestHelpers:
    """Tests for module helpers."""

    def test_group_colors(self):
        """Stanza kinds get distinct colors."""
        labels = ("Verse 2", "Chorus", "Bridge", "Tag", "Intro")
        colors = {(c.red, c.green, c.blue) for c in map(group_color, labels)}
        assert len(colors) == 5

    def test_find_template_action(self, template_document):
        """The first cue with a presentation slide is found."""
        cue, index = find_template_action(template_document)
        assert cue is template_document.cues[0]
        assert index == 0
        template_document.cues = []
        assert find_template_action(template_document) is None
