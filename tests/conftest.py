"""
Pytest configuration and fixtures.

Template documents are built in code: a slide with a background shape, a
Cocoa-style RTF body text element that references color 2 of its color
table, and a smaller caption text element.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from proflow.models import (
    Action,
    ApplicationInfo,
    Color,
    Cue,
    CueGroup,
    Document,
    EdgeInsets,
    Element,
    Fill,
    Group,
    Point,
    PresentationSlide,
    Rect,
    Settings,
    Size,
    Slide,
    SlideElement,
    Text,
)
from proflow.models.template_type import TemplateType
from proflow.services import container_codec
from proflow.services.identifiers import IdentifierPool
from proflow.services.presentation_generator import PresentationGenerator
from proflow.services.template_cache import TemplateCache

BODY_RTF = (
    "{\\rtf1\\ansi\\ansicpg1252\\cocoartf2639\n"
    "\\cocoatextscaling0\\cocoaplatform0{\\fonttbl\\f0\\fswiss\\fcharset0 Helvetica;}\n"
    "{\\colortbl;\\red255\\green255\\blue255;\\red255\\green204\\blue0;}\n"
    "{\\*\\expandedcolortbl;;\\csgenericrgb\\c100000\\c80000\\c0;}\n"
    "\\pard\\pardirnatural\\qc\\partightenfactor0\n"
    "\n"
    "\\f0\\fs120 \\cf2 Placeholder text}"
)

CAPTION_RTF = (
    "{\\rtf1\\ansi\\ansicpg1252\\cocoartf2639\n"
    "{\\fonttbl\\f0\\fswiss\\fcharset0 Helvetica;}\n"
    "{\\colortbl;\\red255\\green255\\blue255;\\red200\\green200\\blue200;}\n"
    "\\pard\\qr\\f0\\i\\fs48 \\cf2 Reference}"
)

BACKGROUND_ID = "0A0A0A0A-0000-4000-8000-000000000001"
BODY_ID = "0A0A0A0A-0000-4000-8000-000000000002"
CAPTION_ID = "0A0A0A0A-0000-4000-8000-000000000003"
SLIDE_ID = "0A0A0A0A-0000-4000-8000-000000000004"
ACTION_ID = "0A0A0A0A-0000-4000-8000-000000000005"
CUE_ID = "0A0A0A0A-0000-4000-8000-000000000006"
GROUP_ID = "0A0A0A0A-0000-4000-8000-000000000007"
DOCUMENT_ID = "0A0A0A0A-0000-4000-8000-000000000008"


def _rect(x: float, y: float, width: float, height: float) -> Rect:
    return Rect(origin=Point(x=x, y=y), size=Size(width=width, height=height))


def build_template(name: str = "Template") -> Document:
    """A one-slide template document."""
    background = Element(
        uuid=BACKGROUND_ID,
        name="Background",
        bounds=_rect(0, 0, 1920, 1080),
        opacity=1.0,
        fill=Fill(enable=True, color=Color.rgba(0.1, 0.1, 0.3)),
    )
    body = Element(
        uuid=BODY_ID,
        name="Body",
        bounds=_rect(100, 140, 1720, 800),
        opacity=1.0,
        text=Text(
            rtf_data=BODY_RTF.encode("latin-1"),
            margins=EdgeInsets(left=0, right=0, top=0, bottom=0),
        ),
    )
    caption = Element(
        uuid=CAPTION_ID,
        name="Reference",
        bounds=_rect(100, 960, 1720, 100),
        opacity=1.0,
        text=Text(rtf_data=CAPTION_RTF.encode("latin-1")),
    )
    slide = Slide(
        elements=[SlideElement(element=background), SlideElement(element=body),
                  SlideElement(element=caption)],
        element_build_order=[BACKGROUND_ID, BODY_ID, CAPTION_ID],
        draws_background_color=True,
        background_color=Color.rgba(0, 0, 0),
        size=Size(width=1920, height=1080),
        uuid=SLIDE_ID,
    )
    cue = Cue(
        uuid=CUE_ID,
        actions=[Action.for_presentation_slide(PresentationSlide(base_slide=slide), uuid=ACTION_ID)],
        is_enabled=True,
    )
    return Document(
        application_info=ApplicationInfo.default(),
        uuid=DOCUMENT_ID,
        name=name,
        category="Presentation",
        cues=[cue],
        cue_groups=[CueGroup(
            group=Group(uuid=GROUP_ID, name="Template", color=Color.rgba(0.5, 0.5, 0.5)),
            cue_identifiers=[CUE_ID],
        )],
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def template_document() -> Document:
    return build_template()


@pytest.fixture
def template_bytes() -> bytes:
    return container_codec.encode(build_template())


@pytest.fixture
def templates_dir(temp_dir: Path) -> Path:
    """A folder holding a template for every category."""
    folder = temp_dir / "templates"
    folder.mkdir()
    for template_type in TemplateType:
        data = container_codec.encode(build_template(f"{template_type.display_name} template"))
        (folder / template_type.filename).write_bytes(data)
    return folder


@pytest.fixture
def settings(temp_dir: Path, templates_dir: Path) -> Settings:
    return Settings(
        templates_folder=str(templates_dir),
        output_folder=str(temp_dir / "out"),
        retry_delay=0,
    )


@pytest.fixture
def identifiers() -> IdentifierPool:
    return IdentifierPool()


@pytest.fixture
def cache(settings: Settings) -> TemplateCache:
    return TemplateCache.from_settings(settings)


@pytest.fixture
def generator(cache: TemplateCache, settings: Settings,
              identifiers: IdentifierPool) -> PresentationGenerator:
    return PresentationGenerator(cache, settings, identifiers)
