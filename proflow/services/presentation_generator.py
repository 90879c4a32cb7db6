"""Generates new presentation documents from template skeletons."""

import copy
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import TemplateInvalidError
from ..logging_config import get_logger
from ..models.document import (
    ApplicationInfo,
    Arrangement,
    Color,
    CompletionTargetType,
    Cue,
    CueGroup,
    Document,
    Group,
    PresentationSlide,
)
from ..models.rich_text import TextRun
from ..models.settings import Settings
from ..models.template_type import TemplateType
from . import container_codec
from .content_injector import Placement, Segment, estimate_capacity, inject, segments_for
from .identifiers import IdentifierPool, default_pool
from .rtf_codec import runs_from_marked_text
from .slide_cloner import SlideCloner, text_elements
from .template_cache import TemplateCache

logger = get_logger("presentation_generator")

DEFAULT_GROUP_NAME = "Default"
DEFAULT_ARRANGEMENT_NAME = "Default"
DEFAULT_GROUP_COLOR = (0.0, 0.0, 1.0, 1.0)


def group_color(label: str) -> Color:
    """Color of a cue group, from the kind of stanza it holds."""
    label_lower = label.lower()
    if "verse" in label_lower:
        return Color.rgba(0.2, 0.4, 1.0)
    if "chorus" in label_lower:
        return Color.rgba(0.2, 0.8, 0.4)
    if "bridge" in label_lower:
        return Color.rgba(0.8, 0.2, 0.8)
    if "tag" in label_lower or "ending" in label_lower:
        return Color.rgba(0.2, 0.8, 0.8)
    return Color.rgba(0.6, 0.6, 0.6)


@dataclass
class GenerationRequest:
    """What to generate: a title, a category and the content segments.

    ``captions`` fill the second and later text elements of every slide,
    e.g. the scripture reference under the verse text.
    """
    title: str
    template_type: TemplateType
    segments: List[Segment]
    captions: List[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, title: str, template_type: TemplateType, text: str,
                  captions: Optional[List[str]] = None,
                  settings: Optional[Settings] = None) -> "GenerationRequest":
        superscript = settings.superscript_verse_numbers if settings is not None else True
        return cls(
            title=title,
            template_type=template_type,
            segments=segments_for(template_type, text, superscript),
            captions=list(captions or []),
        )


@dataclass
class GenerationResult:
    document: Document
    slide_count: int
    path: Optional[str] = None
    size: int = 0


def find_template_action(document: Document) -> Optional[Tuple[Cue, int]]:
    """First cue of a template carrying a presentation slide, and the action index."""
    for cue in document.cues:
        for index, action in enumerate(cue.actions):
            slide = action.presentation_slide
            if slide is not None and slide.base_slide is not None:
                return cue, index
    return None


class PresentationGenerator:
    """Builds documents: template, pagination, cloning, assembly, encoding."""

    def __init__(self, cache: TemplateCache, settings: Optional[Settings] = None,
                 identifiers: Optional[IdentifierPool] = None):
        self.cache = cache
        self.settings = settings or Settings()
        self.identifiers = identifiers or default_pool
        self.cloner = SlideCloner(self.identifiers)

    def generate(self, request: GenerationRequest) -> Document:
        """Build a new document for ``request``.

        Raises:
            TemplateNotFoundError: No template for the request's category
            TemplateInvalidError: The template has no presentation slide
            ValueError: The request has no content
        """
        if not any(segment.text.strip() for segment in request.segments):
            raise ValueError(f"Nothing to generate for '{request.title}': no text")

        template_type = request.template_type
        template = self.cache.get(template_type)
        self.identifiers.reserve_tree(template)
        found = find_template_action(template)
        if found is None:
            raise TemplateInvalidError(template_type.value, self.cache.source_of(template_type))
        template_cue, action_index = found
        template_slide = template_cue.actions[action_index].presentation_slide

        targets = text_elements(template_slide.base_slide)
        capacity = estimate_capacity(targets[0] if targets else None, self.settings)
        placements = inject(request.segments, capacity)

        slides = [
            self.cloner.clone(template_slide, blocks_for(placement, request.captions))
            for placement in placements
        ]

        document = self._assemble(template, template_cue, action_index, request, placements, slides)
        logger.info(
            f"Generated '{request.title}' from the {template_type.value} template: "
            f"{len(document.cues)} slides"
        )
        return document

    def generate_bytes(self, request: GenerationRequest) -> bytes:
        return container_codec.encode(self.generate(request))

    def write(self, request: GenerationRequest, path: str) -> GenerationResult:
        """Generate and atomically write a document.

        Raises:
            FileWriteError: The file could not be written after retries
        """
        document = self.generate(request)
        size = container_codec.write_document(
            document, path,
            retries=self.settings.write_retries,
            delay=self.settings.retry_delay,
        )
        return GenerationResult(document=document, slide_count=len(document.cues), path=path, size=size)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _assemble(self, template: Document, template_cue: Cue, action_index: int,
                  request: GenerationRequest, placements: List[Placement],
                  slides: List[PresentationSlide]) -> Document:
        document = Document(
            application_info=copy.deepcopy(template.application_info) or ApplicationInfo.default(),
            uuid=self.identifiers.new(),
            name=request.title,
            category=template.category,
            notes=template.notes,
            unknown_fields=copy.deepcopy(template.unknown_fields),
            wire_order=list(template.wire_order),
        )

        label = None
        labels: List[Optional[str]] = []
        stanza_starts: List[bool] = []
        for index, (placement, slide) in enumerate(zip(placements, slides)):
            # Continuation slides of a stanza keep its label
            starts_stanza = placement.pieces[0].starts_slide or bool(placement.label)
            if starts_stanza:
                label = placement.label
            labels.append(label)
            stanza_starts.append(starts_stanza)
            name = label or f"Slide {index + 1}"
            document.cues.append(self._make_cue(template_cue, action_index, slide, name))

        document.cue_groups, group_order = self._make_groups(
            template, document.cues, labels, stanza_starts)
        arrangement = Arrangement(
            uuid=self.identifiers.new(),
            name=DEFAULT_ARRANGEMENT_NAME,
            group_identifiers=group_order,
        )
        document.arrangements = [arrangement]
        document.selected_arrangement = arrangement.uuid
        return document

    def _make_cue(self, template_cue: Cue, action_index: int,
                  slide: PresentationSlide, name: str) -> Cue:
        cue = copy.deepcopy(template_cue)
        cue.uuid = self.identifiers.new()
        cue.name = name
        cue.completion_target_type = CompletionTargetType.NONE
        cue.completion_target_uuid = None
        cue.completion_action_uuid = None

        # Keep the template's other actions (media, props); one slide per cue
        actions = []
        for index, action in enumerate(cue.actions):
            if index == action_index:
                action.slide.presentation = slide
            elif action.presentation_slide is not None:
                continue
            action.uuid = self.identifiers.new()
            actions.append(action)
        cue.actions = actions
        return cue

    def _make_groups(self, template: Document, cues: List[Cue], labels: List[Optional[str]],
                     stanza_starts: List[bool]) -> Tuple[List[CueGroup], List[str]]:
        """One cue group per stanza, listed once in the arrangement.

        An arrangement plays every cue of each group it lists; a repeated
        label gets a group of its own.
        """
        template_group = None
        if template.cue_groups and template.cue_groups[0].group is not None:
            template_group = template.cue_groups[0].group

        groups: List[CueGroup] = []
        for cue, label, starts_stanza in zip(cues, labels, stanza_starts):
            if starts_stanza or not groups:
                groups.append(CueGroup(group=self._make_group(template_group, label)))
            groups[-1].cue_identifiers.append(cue.uuid)
        return groups, [cue_group.group.uuid for cue_group in groups]

    def _make_group(self, template_group: Optional[Group], label: Optional[str]) -> Group:
        if template_group is not None:
            group = copy.deepcopy(template_group)
        else:
            group = Group(name=DEFAULT_GROUP_NAME, color=Color.rgba(*DEFAULT_GROUP_COLOR))
        group.uuid = self.identifiers.new()
        if label:
            group.name = label
            group.color = group_color(label)
            # No longer the library group the template pointed at
            group.application_group_identifier = None
            group.application_group_name = ""
        return group


def blocks_for(placement: Placement, captions: List[str]) -> List[List[TextRun]]:
    """Text blocks of one slide: the placement body, then the captions."""
    return [placement.runs] + [runs_from_marked_text(caption) for caption in captions]
