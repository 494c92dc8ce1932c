"""Inject Swift Package Manager dependencies into a parsed pbxproj.

Six regions change, always by insertion:

1. a new XCRemoteSwiftPackageReference section (one entry per package),
2. a new XCSwiftPackageProductDependency section (one entry per product),
3. PBXBuildFile entries pointing at each product dependency,
4. the `files` list of the frameworks build phase,
5. the project's `packageReferences` list,
6. the main target's `packageProductDependencies` list.

Every anchor is located before any text is produced, so a failure leaves
nothing half-written.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from kfire_setup.pbxproj.document import (
    PACKAGE_REFERENCE_KIND,
    PACKAGE_SECTION_MARKER,
    PRODUCT_DEPENDENCY_KIND,
    ParsedDocument,
    SwiftPackage,
    begin_marker,
    end_marker,
)
from kfire_setup.pbxproj.errors import MissingAnchorError, NoBuildTargetError, NoLinkPhaseError
from kfire_setup.pbxproj.ids import IdAllocator
from kfire_setup.pbxproj.splice import (
    ListSpan,
    SpliceBuffer,
    detect_newline,
    find_anchor_line,
    find_list,
    find_object,
    list_append,
    list_block,
    section_span,
)

logger = logging.getLogger(__name__)

OBJECTS_CLOSE_PATTERN = re.compile(r"^([ \t]*)\};[ \t]*\r?\n[ \t]*rootObject[ \t]*=", re.MULTILINE)
BUILD_FILE_END_PATTERN = re.compile(r"^([ \t]*)" + re.escape(end_marker("PBXBuildFile")), re.MULTILINE)
TARGETS_LIST_PATTERN = re.compile(r"^([ \t]*)targets[ \t]*=[ \t]*\(", re.MULTILINE)
PRODUCT_TYPE_PATTERN = re.compile(r"^([ \t]*)productType[ \t]*=", re.MULTILINE)

_UNQUOTED_VALUE = re.compile(r"[A-Za-z0-9_$/:.]+")


def quote_value(value: str) -> str:
    """Render a value the way Xcode does: bare when safe, quoted otherwise."""
    if _UNQUOTED_VALUE.fullmatch(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _quoted(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


@dataclass(frozen=True)
class PlannedProduct:
    name: str
    dependency_id: str
    build_file_id: str
    package_ref_id: str


@dataclass(frozen=True)
class PlannedPackage:
    package: SwiftPackage
    reference_id: str
    products: List[PlannedProduct]

    @property
    def reference_comment(self) -> str:
        return f'/* {PACKAGE_REFERENCE_KIND} "{self.package.display_name}" */'


def plan_packages(packages: Sequence[SwiftPackage], allocator: IdAllocator) -> List[PlannedPackage]:
    """Allocate every id the splice steps will reference."""
    planned: List[PlannedPackage] = []
    for package in packages:
        reference_id = allocator.allocate()
        products = [
            PlannedProduct(
                name=name,
                dependency_id=allocator.allocate(),
                build_file_id=allocator.allocate(),
                package_ref_id=reference_id,
            )
            for name in package.products
        ]
        planned.append(PlannedPackage(package=package, reference_id=reference_id, products=products))
    return planned


def _all_products(planned: Sequence[PlannedPackage]) -> List[PlannedProduct]:
    return [product for item in planned for product in item.products]


def _package_reference_section(planned: Sequence[PlannedPackage], nl: str) -> str:
    lines = ["", begin_marker(PACKAGE_REFERENCE_KIND)]
    for item in planned:
        lines.extend(
            [
                f"\t\t{item.reference_id} {item.reference_comment} = {{",
                f"\t\t\tisa = {PACKAGE_REFERENCE_KIND};",
                f"\t\t\trepositoryURL = {_quoted(item.package.repository_url)};",
                "\t\t\trequirement = {",
                "\t\t\t\tkind = upToNextMajorVersion;",
                f"\t\t\t\tminimumVersion = {quote_value(item.package.version)};",
                "\t\t\t};",
                "\t\t};",
            ]
        )
    lines.append(end_marker(PACKAGE_REFERENCE_KIND))
    return nl.join(lines) + nl


def _product_dependency_section(planned: Sequence[PlannedPackage], nl: str) -> str:
    lines = ["", begin_marker(PRODUCT_DEPENDENCY_KIND)]
    for item in planned:
        for product in item.products:
            lines.extend(
                [
                    f"\t\t{product.dependency_id} /* {product.name} */ = {{",
                    f"\t\t\tisa = {PRODUCT_DEPENDENCY_KIND};",
                    f"\t\t\tpackage = {item.reference_id} {item.reference_comment};",
                    f"\t\t\tproductName = {quote_value(product.name)};",
                    "\t\t};",
                ]
            )
    lines.append(end_marker(PRODUCT_DEPENDENCY_KIND))
    return nl.join(lines) + nl


def _build_file_lines(products: Sequence[PlannedProduct], indent: str, nl: str) -> str:
    return "".join(
        f"{indent}{product.build_file_id} /* {product.name} in Frameworks */ = "
        f"{{isa = PBXBuildFile; productRef = {product.dependency_id} /* {product.name} */; }};{nl}"
        for product in products
    )


def _require(value, step: str, anchor: str, detail: str = ""):
    if value is None:
        raise MissingAnchorError(step, anchor, detail)
    return value


def _list_slot(text: str, key: str, body, anchor_pattern: re.Pattern, step: str, anchor: str):
    """The existing `key` list in `body`, else the anchor line a new list goes before.

    Xcode writes empty `packageProductDependencies` lists into new targets;
    extending those avoids a duplicate key.
    """
    existing = find_list(text, key, body)
    if existing is not None:
        return existing
    return _require(find_anchor_line(text, anchor_pattern, body), step, anchor)


def _fill_list_slot(buffer: SpliceBuffer, slot, key: str, entries: List[str], nl: str):
    if isinstance(slot, ListSpan):
        buffer.insert(*list_append(buffer.source, slot, entries, nl))
    else:
        offset, indent = slot
        buffer.insert(offset, list_block(key, entries, indent, nl))


def add_packages(
    document: ParsedDocument,
    packages: Sequence[SwiftPackage],
    *,
    signature: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Return new pbxproj text declaring `packages` and linking every product.

    No-op (original content returned) when `packages` is empty or the project
    already declares Swift packages. Raises NoBuildTargetError,
    NoLinkPhaseError or MissingAnchorError when a required region is absent.
    Xcode 16 projects built only from synchronized folders may lack a
    PBXBuildFile section; those fail on the build-files step.
    """
    content = document.content
    if not packages:
        return content

    signature = signature or PACKAGE_SECTION_MARKER
    if document.has_external_packages or signature in content:
        logger.info("⏭️ Swift packages already configured; leaving project untouched")
        return content

    if document.main_target_id is None:
        raise NoBuildTargetError()
    if document.frameworks_phase_id is None:
        raise NoLinkPhaseError()

    nl = detect_newline(content)
    buffer = SpliceBuffer(content)

    # Locate every anchor before allocating ids or producing text.
    objects_close = _require(
        find_anchor_line(content, OBJECTS_CLOSE_PATTERN),
        "package references",
        "closing of objects before rootObject",
    )
    build_files_end = _require(
        find_anchor_line(content, BUILD_FILE_END_PATTERN),
        "build files",
        end_marker("PBXBuildFile"),
        "projects using only synchronized folders have no PBXBuildFile section; "
        "add any file or framework to the target in Xcode first",
    )
    phase_body = _require(
        find_object(content, document.frameworks_phase_id, section_span(content, "PBXFrameworksBuildPhase")),
        "link phase",
        f"frameworks build phase {document.frameworks_phase_id}",
    )
    phase_files = _require(
        find_list(content, "files", phase_body),
        "link phase",
        f"files list of {document.frameworks_phase_id}",
    )
    project_body = _require(
        find_object(content, document.project_id, section_span(content, "PBXProject")),
        "project package list",
        f"project object {document.project_id}",
    )
    target_body = _require(
        find_object(content, document.main_target_id, section_span(content, "PBXNativeTarget")),
        "target product list",
        f"native target {document.main_target_id}",
    )
    project_refs_slot = _list_slot(
        content,
        "packageReferences",
        project_body,
        TARGETS_LIST_PATTERN,
        "project package list",
        f"targets list of {document.project_id}",
    )
    target_deps_slot = _list_slot(
        content,
        "packageProductDependencies",
        target_body,
        PRODUCT_TYPE_PATTERN,
        "target product list",
        f"productType of {document.main_target_id}",
    )

    planned = plan_packages(packages, IdAllocator.for_content(content, rng=rng))
    products = _all_products(planned)
    logger.info(
        "📦 Adding %d Swift package(s) with %d product(s) to target %s",
        len(planned),
        len(products),
        document.main_target_id,
    )

    # 1 + 2: both new sections sit before the `};` closing `objects`, in order.
    buffer.insert(objects_close[0], _package_reference_section(planned, nl))
    buffer.insert(objects_close[0], _product_dependency_section(planned, nl))
    logger.debug("   sections: %s", ", ".join(item.reference_id for item in planned))

    if products:
        # 3
        buffer.insert(build_files_end[0], _build_file_lines(products, "\t\t", nl))

        # 4
        buffer.insert(
            *list_append(
                content,
                phase_files,
                [f"{product.build_file_id} /* {product.name} in Frameworks */" for product in products],
                nl,
            )
        )

    # 5
    _fill_list_slot(
        buffer,
        project_refs_slot,
        "packageReferences",
        [f"{item.reference_id} {item.reference_comment}" for item in planned],
        nl,
    )

    # 6
    if products:
        _fill_list_slot(
            buffer,
            target_deps_slot,
            "packageProductDependencies",
            [f"{product.dependency_id} /* {product.name} */" for product in products],
            nl,
        )

    return buffer.render()


__all__ = ["PlannedPackage", "PlannedProduct", "add_packages", "plan_packages", "quote_value"]
