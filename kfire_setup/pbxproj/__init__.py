"""Parser and modifier for Xcode project.pbxproj files."""

from .document import ParsedDocument, SwiftPackage  # noqa: F401
from .errors import (  # noqa: F401
    MissingAnchorError,
    NoBuildTargetError,
    NoLinkPhaseError,
    PbxprojError,
    PbxprojParseError,
)
from .ids import IdAllocator, collect_object_ids  # noqa: F401
from .modifier import add_packages  # noqa: F401
from .parser import has_package_references, parse_pbxproj  # noqa: F401

__all__ = [
    "IdAllocator",
    "MissingAnchorError",
    "NoBuildTargetError",
    "NoLinkPhaseError",
    "ParsedDocument",
    "PbxprojError",
    "PbxprojParseError",
    "SwiftPackage",
    "add_packages",
    "collect_object_ids",
    "has_package_references",
    "parse_pbxproj",
]
