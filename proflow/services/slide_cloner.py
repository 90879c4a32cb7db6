"""Clones template slides and substitutes their text."""

import copy
from dataclasses import replace
from typing import Dict, List, Optional

from ..logging_config import get_logger
from ..models.document import Element, PresentationSlide, Slide
from ..models.rich_text import RichText, TextRun
from . import rtf_codec
from .identifiers import IdentifierPool, default_pool

logger = get_logger("slide_cloner")


def text_elements(slide: Slide) -> List[Element]:
    """Text-capable elements of a slide, in document (z) order."""
    return [
        slide_element.element
        for slide_element in slide.elements
        if slide_element.element is not None and slide_element.element.is_text_capable
    ]


def base_run(rich_text: RichText) -> TextRun:
    """Style new text should take: the template's first plain run, else the base."""
    for run in rich_text.runs:
        if not run.superscript:
            return run.with_text("")
    return rich_text.base.with_text("")


def restyle(runs: List[TextRun], template: TextRun) -> List[TextRun]:
    """Give content runs the template's style, keeping superscript markers."""
    restyled = []
    for run in runs:
        if run.superscript:
            restyled.append(replace(template, text=run.text, superscript=True,
                                    size=run.size))
        else:
            restyled.append(template.with_text(run.text))
    return restyled


class SlideCloner:
    """Produces new slides from a template slide.

    Everything is deep-copied; only identifiers and the text runs of
    text-capable elements change.
    """

    def __init__(self, identifiers: Optional[IdentifierPool] = None):
        self.identifiers = identifiers or default_pool

    def clone(self, template: PresentationSlide, blocks: List[List[TextRun]]) -> PresentationSlide:
        """Clone ``template`` and fill its text elements with ``blocks``.

        Block ``i`` replaces the text of the ``i``-th text element. Text
        elements without a block keep their placeholder text.
        """
        cloned = copy.deepcopy(template)
        slide = cloned.base_slide
        if slide is None:
            return cloned

        self._regenerate_identifiers(slide)

        targets = text_elements(slide)
        if len(blocks) > len(targets):
            logger.warning(
                f"Template slide has {len(targets)} text elements for {len(blocks)} text blocks; "
                f"extra blocks are not shown"
            )
        for element, runs in zip(targets, blocks):
            self._replace_text(element, runs)
        return cloned

    def _regenerate_identifiers(self, slide: Slide) -> None:
        mapping: Dict[str, str] = {}
        slide.uuid = self.identifiers.new()
        for slide_element in slide.elements:
            element = slide_element.element
            if element is None:
                continue
            new_id = self.identifiers.new()
            if element.uuid:
                mapping[element.uuid] = new_id
            element.uuid = new_id
            if element.fill is not None and element.fill.media is not None and element.fill.media.uuid:
                element.fill.media.uuid = self.identifiers.new()
        slide.element_build_order = [
            mapping.get(identifier, identifier) for identifier in slide.element_build_order
        ]

    @staticmethod
    def _replace_text(element: Element, runs: List[TextRun]) -> None:
        rich = rtf_codec.decode(element.text.rtf_data)
        new_runs = restyle(runs, base_run(rich))
        element.text.rtf_data = rtf_codec.encode_bytes(rich.with_runs(new_runs))
