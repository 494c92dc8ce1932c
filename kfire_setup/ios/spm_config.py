"""Swift Package Manager setup for the iOS app of a Kotlin Multiplatform project.

Finds the Xcode project, turns the selected Firebase modules into SPM
products and writes the patched project.pbxproj back in one piece.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from kfire_setup.ios.settings import SpmSettings
from kfire_setup.pbxproj import SwiftPackage, add_packages, has_package_references, parse_pbxproj

logger = logging.getLogger(__name__)

MODULE_TO_PRODUCT: Dict[str, str] = {
    "core": "FirebaseCore",
    "auth": "FirebaseAuth",
    "firestore": "FirebaseFirestore",
    "storage": "FirebaseStorage",
    "messaging": "FirebaseMessaging",
    "analytics": "FirebaseAnalytics",
    "remote_config": "FirebaseRemoteConfig",
    "crashlytics": "FirebaseCrashlytics",
}

_MODULE_ALIASES = {name: name for name in MODULE_TO_PRODUCT}
_MODULE_ALIASES.update({"remoteconfig": "remote_config", "remote-config": "remote_config"})


@dataclass(frozen=True)
class FirebaseIosModules:
    core: bool = True
    auth: bool = False
    firestore: bool = False
    storage: bool = False
    messaging: bool = False
    analytics: bool = False
    remote_config: bool = False
    crashlytics: bool = False

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "FirebaseIosModules":
        flags = {}
        for name in names:
            module = _MODULE_ALIASES.get(name.strip().lower())
            if module is None:
                known = ", ".join(MODULE_TO_PRODUCT)
                raise ValueError(f"Unknown Firebase module '{name}' (known: {known})")
            flags[module] = True
        return cls(**flags)

    def product_names(self) -> List[str]:
        return [product for module, product in MODULE_TO_PRODUCT.items() if getattr(self, module)]


class SpmOutcome(Enum):
    CONFIGURED = "configured"
    ALREADY_CONFIGURED = "already_configured"
    NOTHING_TO_ADD = "nothing_to_add"
    DRY_RUN = "dry_run"


@dataclass(frozen=True)
class SpmResult:
    outcome: SpmOutcome
    pbxproj_path: Path
    original: str
    content: str

    @property
    def changed(self) -> bool:
        return self.content != self.original


def read_pbxproj(path: Path) -> str:
    # newline="" keeps CRLF files byte-identical outside the insertions.
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()


def write_pbxproj(path: Path, content: str):
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)


def patch_pbxproj_file(
    pbxproj_path: Path,
    packages: Sequence[SwiftPackage],
    *,
    signature: Optional[str] = None,
    dry_run: bool = False,
) -> SpmResult:
    """Add `packages` to the project file at `pbxproj_path`.

    The file is only written after the whole modification succeeded; parse
    and anchor errors propagate and leave it untouched.
    """
    pbxproj_path = Path(pbxproj_path)
    if not pbxproj_path.is_file():
        raise FileNotFoundError(f"project.pbxproj not found: {pbxproj_path}")

    original = read_pbxproj(pbxproj_path)
    if not packages:
        return SpmResult(SpmOutcome.NOTHING_TO_ADD, pbxproj_path, original, original)

    document = parse_pbxproj(original)
    if document.has_external_packages or (signature and signature in original):
        logger.info("⏭️ %s already declares Swift packages", pbxproj_path)
        return SpmResult(SpmOutcome.ALREADY_CONFIGURED, pbxproj_path, original, original)

    content = add_packages(document, packages, signature=signature)
    if dry_run:
        logger.info("📝 Dry run: %s left unchanged", pbxproj_path)
        return SpmResult(SpmOutcome.DRY_RUN, pbxproj_path, original, content)

    write_pbxproj(pbxproj_path, content)
    logger.info("✅ Updated %s", pbxproj_path)
    return SpmResult(SpmOutcome.CONFIGURED, pbxproj_path, original, content)


class SpmConfigurator:
    """Locate the Xcode project under a KMP root and wire Swift packages into it."""

    def __init__(self, project_root: Path, settings: Optional[SpmSettings] = None):
        self.project_root = Path(project_root)
        self.settings = settings or SpmSettings.from_env()

    def find_ios_app_directory(self) -> Optional[Path]:
        for relative in self.settings.ios_app_dirs:
            candidate = self.project_root / relative
            if candidate.is_dir() and any(candidate.glob("*.xcodeproj")):
                return candidate
        return None

    def xcodeproj_path(self) -> Optional[Path]:
        app_dir = self.find_ios_app_directory()
        if app_dir is None:
            return None
        projects = sorted(app_dir.glob("*.xcodeproj"))
        return projects[0] if projects else None

    def pbxproj_path(self) -> Optional[Path]:
        xcodeproj = self.xcodeproj_path()
        if xcodeproj is None:
            return None
        pbxproj = xcodeproj / "project.pbxproj"
        return pbxproj if pbxproj.is_file() else None

    def has_spm_dependencies(self) -> bool:
        pbxproj = self.pbxproj_path()
        if pbxproj is None:
            return False
        return has_package_references(read_pbxproj(pbxproj))

    def firebase_package(self, modules: FirebaseIosModules) -> SwiftPackage:
        return SwiftPackage(
            repository_url=self.settings.firebase_repo_url,
            version=self.settings.firebase_version,
            products=tuple(modules.product_names()),
        )

    def add_packages(
        self,
        packages: Sequence[SwiftPackage],
        *,
        signature: Optional[str] = None,
        dry_run: bool = False,
    ) -> SpmResult:
        pbxproj = self.pbxproj_path()
        if pbxproj is None:
            searched = ", ".join(str(self.project_root / d) for d in self.settings.ios_app_dirs)
            raise FileNotFoundError(f"No Xcode project with a project.pbxproj found (searched: {searched})")
        return patch_pbxproj_file(pbxproj, packages, signature=signature, dry_run=dry_run)

    def configure_spm(self, modules: FirebaseIosModules, *, dry_run: bool = False) -> SpmResult:
        """Add the Firebase iOS SDK products selected in `modules`."""
        package = self.firebase_package(modules)
        if not package.products:
            logger.warning("⚠️ No Firebase modules selected; nothing to add")
            return self.add_packages([], dry_run=dry_run)
        logger.info("🔥 Firebase products: %s", ", ".join(package.products))
        return self.add_packages([package], signature=package.display_name, dry_run=dry_run)


__all__ = [
    "FirebaseIosModules",
    "MODULE_TO_PRODUCT",
    "SpmConfigurator",
    "SpmOutcome",
    "SpmResult",
    "patch_pbxproj_file",
    "read_pbxproj",
    "write_pbxproj",
]
