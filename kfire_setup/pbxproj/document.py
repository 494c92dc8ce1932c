"""Value types shared by the pbxproj parser and modifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

PACKAGE_REFERENCE_KIND = "XCRemoteSwiftPackageReference"
PRODUCT_DEPENDENCY_KIND = "XCSwiftPackageProductDependency"


def begin_marker(kind: str) -> str:
    return f"/* Begin {kind} section */"


def end_marker(kind: str) -> str:
    return f"/* End {kind} section */"


PACKAGE_SECTION_MARKER = begin_marker(PACKAGE_REFERENCE_KIND)


def _comment_safe(text: str) -> bool:
    return "*/" not in text and "\n" not in text and "\r" not in text


@dataclass(frozen=True)
class ParsedDocument:
    """Structural skeleton of one project.pbxproj read.

    Built fresh for every operation; the file may change between CLI runs.
    """

    content: str
    root_object_id: str
    project_id: str
    main_target_id: Optional[str]
    frameworks_phase_id: Optional[str]
    has_external_packages: bool
    existing_package_refs: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SwiftPackage:
    """A remote Swift package and the products a target should link."""

    repository_url: str
    version: str
    products: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.repository_url.strip():
            raise ValueError("Swift package needs a repository URL.")
        if not self.version.strip():
            raise ValueError(f"Swift package {self.repository_url} needs a minimum version.")
        products = tuple(self.products)
        # Names end up inside `/* ... */` comments of the written file.
        for name in products:
            if not name.strip():
                raise ValueError(f"Swift package {self.repository_url} has an empty product name.")
            if not _comment_safe(name):
                raise ValueError(f"Product name {name!r} cannot be written into a pbxproj comment.")
        if not self.display_name or not _comment_safe(self.display_name):
            raise ValueError(f"Cannot derive a package name from {self.repository_url!r}.")
        duplicates = sorted({name for name in products if products.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate products for {self.repository_url}: {', '.join(duplicates)}")
        object.__setattr__(self, "products", products)

    @property
    def display_name(self) -> str:
        """Repository name as Xcode shows it (`.../foo.git` -> `foo`)."""
        name = self.repository_url.rstrip("/").rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return name


__all__ = [
    "PACKAGE_REFERENCE_KIND",
    "PACKAGE_SECTION_MARKER",
    "PRODUCT_DEPENDENCY_KIND",
    "ParsedDocument",
    "SwiftPackage",
    "begin_marker",
    "end_marker",
]
