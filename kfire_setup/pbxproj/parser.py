"""Extract the identifiers needed to inject Swift packages into a pbxproj.

The format has no official grammar, so the parser only looks for a handful of
well-known markers:

- the `rootObject = <id>` assignment (mandatory),
- the first object of the PBXProject, PBXNativeTarget and
  PBXFrameworksBuildPhase sections,
- any existing XCRemoteSwiftPackageReference section or reference.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from kfire_setup.pbxproj.document import (
    PACKAGE_REFERENCE_KIND,
    PACKAGE_SECTION_MARKER,
    ParsedDocument,
)
from kfire_setup.pbxproj.errors import PbxprojParseError

logger = logging.getLogger(__name__)

ROOT_OBJECT_PATTERN = re.compile(r"rootObject\s*=\s*([0-9A-F]{24})\b")
EXISTING_PACKAGE_REF_PATTERN = re.compile(
    r"\b([0-9A-F]{24})\s*/\*\s*" + PACKAGE_REFERENCE_KIND + r"\b"
)


def _first_object_pattern(kind: str) -> re.Pattern:
    # An empty section puts the End marker where the id would be, so no match.
    return re.compile(
        r"/\* Begin " + kind + r" section \*/\s*([0-9A-F]{24})\s*(?:/\*.*?\*/\s*)?=\s*\{"
    )


PROJECT_SECTION_PATTERN = _first_object_pattern("PBXProject")
NATIVE_TARGET_PATTERN = _first_object_pattern("PBXNativeTarget")
FRAMEWORKS_PHASE_PATTERN = _first_object_pattern("PBXFrameworksBuildPhase")


def _first_group(pattern: re.Pattern, content: str) -> Optional[str]:
    match = pattern.search(content)
    return match.group(1) if match else None


def has_package_references(content: str) -> bool:
    return PACKAGE_SECTION_MARKER in content


def parse_pbxproj(content: str) -> ParsedDocument:
    """Parse pbxproj text into a ParsedDocument.

    Raises PbxprojParseError when no root object can be found; callers must
    abort the whole operation in that case.
    """
    root_object_id = _first_group(ROOT_OBJECT_PATTERN, content)
    if root_object_id is None:
        raise PbxprojParseError("No rootObject found; file is not a readable project.pbxproj")

    project_id = _first_group(PROJECT_SECTION_PATTERN, content) or root_object_id
    main_target_id = _first_group(NATIVE_TARGET_PATTERN, content)
    frameworks_phase_id = _first_group(FRAMEWORKS_PHASE_PATTERN, content)
    existing_refs = tuple(dict.fromkeys(EXISTING_PACKAGE_REF_PATTERN.findall(content)))

    document = ParsedDocument(
        content=content,
        root_object_id=root_object_id,
        project_id=project_id,
        main_target_id=main_target_id,
        frameworks_phase_id=frameworks_phase_id,
        has_external_packages=has_package_references(content),
        existing_package_refs=existing_refs,
    )
    logger.debug(
        "🔎 Parsed pbxproj: root=%s project=%s target=%s frameworks=%s packages=%d",
        document.root_object_id,
        document.project_id,
        document.main_target_id,
        document.frameworks_phase_id,
        len(document.existing_package_refs),
    )
    return document


__all__ = ["has_package_references", "parse_pbxproj"]
