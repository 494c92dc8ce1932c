"""Typed failures raised while reading or patching project.pbxproj files."""

from __future__ import annotations


class PbxprojError(RuntimeError):
    """Base class for every pbxproj parse/patch failure."""


class PbxprojParseError(PbxprojError, ValueError):
    """The text has no `rootObject` assignment and cannot be patched."""


class MissingAnchorError(PbxprojError):
    """A splice step could not locate the marker it inserts against."""

    def __init__(self, step: str, anchor: str, detail: str = ""):
        self.step = step
        self.anchor = anchor
        message = f"{step}: could not locate {anchor}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class NoBuildTargetError(MissingAnchorError):
    def __init__(self):
        super().__init__("target product list", "PBXNativeTarget", "no native target found in pbxproj")


class NoLinkPhaseError(MissingAnchorError):
    def __init__(self):
        super().__init__(
            "link phase",
            "PBXFrameworksBuildPhase",
            "no frameworks build phase found in pbxproj",
        )


__all__ = [
    "MissingAnchorError",
    "NoBuildTargetError",
    "NoLinkPhaseError",
    "PbxprojError",
    "PbxprojParseError",
]
