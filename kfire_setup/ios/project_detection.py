"""Inspect an iOS app: which dependency manager it uses and its bundle id."""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from kfire_setup.ios.settings import SpmSettings
from kfire_setup.ios.spm_config import read_pbxproj
from kfire_setup.pbxproj import has_package_references

logger = logging.getLogger(__name__)

XCCONFIG_NAMES = ("Configuration/Config.xcconfig", "Config.xcconfig")
XCCONFIG_KEYS = (
    re.compile(r"BUNDLE_ID\s*=\s*(.+)"),
    re.compile(r"PRODUCT_BUNDLE_IDENTIFIER\s*=\s*(.+)"),
)
PBXPROJ_BUNDLE_PATTERN = re.compile(r"PRODUCT_BUNDLE_IDENTIFIER\s*=\s*[\"']?([^;\"'\n]+)[\"']?")
PLIST_BUNDLE_PATTERN = re.compile(r"<key>CFBundleIdentifier</key>\s*<string>([^<]+)</string>")
BUNDLE_ID_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9.-]*(\.[a-zA-Z][a-zA-Z0-9-]*)+$")


class IosDependencyManager(Enum):
    NONE = "none"
    COCOAPODS = "cocoapods"
    SPM = "spm"
    BOTH = "both"


def is_valid_bundle_id(bundle_id: str) -> bool:
    """Reverse-domain ids only; unresolved `$(VAR)` / `${VAR}` settings are rejected."""
    if "$(" in bundle_id or "${" in bundle_id:
        return False
    return bool(BUNDLE_ID_PATTERN.match(bundle_id))


class IosProjectInspector:
    def __init__(self, project_root: Path, settings: Optional[SpmSettings] = None):
        self.project_root = Path(project_root)
        self.settings = settings or SpmSettings.from_env()

    def _app_dirs(self) -> List[Path]:
        return [self.project_root / relative for relative in self.settings.ios_app_dirs]

    def find_podfile(self) -> Optional[Path]:
        for app_dir in self._app_dirs():
            podfile = app_dir / "Podfile"
            if podfile.is_file():
                return podfile
        return None

    def pbxproj_candidates(self) -> Iterator[Path]:
        for base in self._app_dirs() + [self.project_root]:
            if not base.is_dir():
                continue
            for xcodeproj in sorted(base.glob("*.xcodeproj")):
                pbxproj = xcodeproj / "project.pbxproj"
                if pbxproj.is_file():
                    yield pbxproj

    def has_spm_dependencies(self) -> bool:
        return any(has_package_references(read_pbxproj(path)) for path in self.pbxproj_candidates())

    def detect_dependency_manager(self) -> IosDependencyManager:
        has_podfile = self.find_podfile() is not None
        has_spm = self.has_spm_dependencies()
        if has_podfile and has_spm:
            return IosDependencyManager.BOTH
        if has_podfile:
            return IosDependencyManager.COCOAPODS
        if has_spm:
            return IosDependencyManager.SPM
        return IosDependencyManager.NONE

    def detect_bundle_id(self) -> Optional[str]:
        """First valid bundle id from xcconfig, then pbxproj, then Info.plist."""
        for app_dir in self._app_dirs():
            for name in XCCONFIG_NAMES:
                xcconfig = app_dir / name
                if xcconfig.is_file():
                    bundle_id = _bundle_id_from_xcconfig(xcconfig.read_text(encoding="utf-8"))
                    if bundle_id:
                        return bundle_id

        for pbxproj in self.pbxproj_candidates():
            bundle_id = _bundle_id_from_pbxproj(read_pbxproj(pbxproj))
            if bundle_id:
                return bundle_id

        for app_dir in self._app_dirs():
            for plist in (app_dir / "iosApp" / "Info.plist", app_dir / "Info.plist"):
                if plist.is_file():
                    bundle_id = _bundle_id_from_plist(plist.read_text(encoding="utf-8"))
                    if bundle_id:
                        return bundle_id

        logger.debug("🔎 No bundle identifier found under %s", self.project_root)
        return None


def _bundle_id_from_xcconfig(content: str) -> Optional[str]:
    for pattern in XCCONFIG_KEYS:
        match = pattern.search(content)
        if match:
            value = match.group(1).strip()
            if is_valid_bundle_id(value):
                return value
    return None


def _bundle_id_from_pbxproj(content: str) -> Optional[str]:
    for match in PBXPROJ_BUNDLE_PATTERN.finditer(content):
        value = match.group(1).strip()
        if is_valid_bundle_id(value):
            return value
    return None


def _bundle_id_from_plist(content: str) -> Optional[str]:
    match = PLIST_BUNDLE_PATTERN.search(content)
    if match and "$" not in match.group(1):
        return match.group(1).strip()
    return None


__all__ = ["IosDependencyManager", "IosProjectInspector", "is_valid_bundle_id"]
