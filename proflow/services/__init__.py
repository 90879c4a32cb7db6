"""Services package."""

from .container_codec import decode, encode, read_document, write_document
from .content_injector import Capacity, Placement, Segment, estimate_capacity, inject, segments_for
from .document_diff import Mismatch, diff, format_mismatches
from .document_dump import document_to_dict, dump_tree, extract_text
from .identifiers import IdentifierPool, generate_uuid
from .playlist_bundler import BundleContents, BundleEntry, PlaylistBundler, read_bundle
from .presentation_generator import GenerationRequest, GenerationResult, PresentationGenerator
from .slide_cloner import SlideCloner
from .template_cache import TemplateCache

__all__ = [
    "decode",
    "encode",
    "read_document",
    "write_document",
    "Capacity",
    "Placement",
    "Segment",
    "estimate_capacity",
    "inject",
    "segments_for",
    "Mismatch",
    "diff",
    "format_mismatches",
    "document_to_dict",
    "dump_tree",
    "extract_text",
    "IdentifierPool",
    "generate_uuid",
    "BundleContents",
    "BundleEntry",
    "PlaylistBundler",
    "read_bundle",
    "GenerationRequest",
    "GenerationResult",
    "PresentationGenerator",
    "SlideCloner",
    "TemplateCache",
]
