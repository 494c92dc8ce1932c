"""
Command-line entry point for wiring Swift packages into a KMP project's iOS app.

Examples:
    kfire-spm inspect --project-root .
    kfire-spm firebase --module auth --module firestore
    kfire-spm add --pbxproj iosApp/iosApp.xcodeproj/project.pbxproj \\
        --url https://github.com/onevcat/Kingfisher.git --version 8.1.0 --product Kingfisher

Nothing is written when a command fails; `--dry-run` prints the diff instead.
"""
from __future__ import annotations

import argparse
import difflib
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from kfire_setup.ios import (
    FirebaseIosModules,
    IosProjectInspector,
    SpmConfigurator,
    SpmOutcome,
    SpmResult,
    SpmSettings,
)
from kfire_setup.ios.spm_config import MODULE_TO_PRODUCT, patch_pbxproj_file, read_pbxproj
from kfire_setup.pbxproj import PbxprojError, SwiftPackage, parse_pbxproj

logger = logging.getLogger("kfire_setup")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kfire-spm",
        description="Add Swift Package Manager dependencies to an Xcode project.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    inspect = commands.add_parser("inspect", help="Show what the pbxproj parser sees.")
    inspect.add_argument("--project-root", type=Path, default=Path("."), help="KMP project root (default: .)")
    inspect.add_argument("--json", action="store_true", help="Emit JSON instead of text.")

    firebase = commands.add_parser("firebase", help="Add Firebase iOS SDK products.")
    firebase.add_argument("--project-root", type=Path, default=Path("."), help="KMP project root (default: .)")
    firebase.add_argument(
        "--module",
        dest="modules",
        action="append",
        default=[],
        help=f"Firebase module to add; repeatable. Core is always included. Known: {', '.join(MODULE_TO_PRODUCT)}",
    )
    firebase.add_argument("--dry-run", action="store_true", help="Print the diff without writing.")

    add = commands.add_parser("add", help="Add an arbitrary Swift package to a pbxproj file.")
    add.add_argument("--pbxproj", type=Path, required=True, help="Path to project.pbxproj")
    add.add_argument("--url", required=True, help="Package repository URL")
    add.add_argument("--version", required=True, help="Minimum version (up to next major)")
    add.add_argument(
        "--product",
        dest="products",
        action="append",
        required=True,
        help="Product to link into the main target; repeatable.",
    )
    add.add_argument("--dry-run", action="store_true", help="Print the diff without writing.")
    return parser.parse_args(argv)


def _print_diff(result: SpmResult) -> None:
    diff = difflib.unified_diff(
        result.original.splitlines(keepends=True),
        result.content.splitlines(keepends=True),
        fromfile=str(result.pbxproj_path),
        tofile=f"{result.pbxproj_path} (patched)",
    )
    sys.stdout.writelines(diff)


def _report(result: SpmResult) -> None:
    if result.outcome is SpmOutcome.DRY_RUN:
        _print_diff(result)
    elif result.outcome is SpmOutcome.ALREADY_CONFIGURED:
        print(f"⏭️  Swift packages already configured in {result.pbxproj_path}")
    elif result.outcome is SpmOutcome.NOTHING_TO_ADD:
        print("⚠️  Nothing to add")
    else:
        print(f"✅ Swift packages added to {result.pbxproj_path}")


def run_inspect(args: argparse.Namespace, settings: SpmSettings) -> None:
    configurator = SpmConfigurator(args.project_root, settings)
    inspector = IosProjectInspector(args.project_root, settings)
    pbxproj = configurator.pbxproj_path()
    if pbxproj is None:
        raise SystemExit(f"❌ No Xcode project found under {args.project_root}")

    document = parse_pbxproj(read_pbxproj(pbxproj))
    payload = {
        "pbxproj": str(pbxproj),
        "root_object_id": document.root_object_id,
        "project_id": document.project_id,
        "main_target_id": document.main_target_id,
        "frameworks_phase_id": document.frameworks_phase_id,
        "has_external_packages": document.has_external_packages,
        "existing_package_refs": list(document.existing_package_refs),
        "dependency_manager": inspector.detect_dependency_manager().value,
        "bundle_id": inspector.detect_bundle_id(),
    }
    if args.json:
        print(json.dumps(payload, indent=2))
        return
    for key, value in payload.items():
        print(f"{key:<24} {value}")


def run_firebase(args: argparse.Namespace, settings: SpmSettings) -> SpmResult:
    try:
        modules = FirebaseIosModules.from_names(["core", *args.modules])
    except ValueError as exc:
        raise SystemExit(f"❌ {exc}")
    configurator = SpmConfigurator(args.project_root, settings)
    return configurator.configure_spm(modules, dry_run=args.dry_run)


def run_add(args: argparse.Namespace) -> SpmResult:
    try:
        package = SwiftPackage(repository_url=args.url, version=args.version, products=tuple(args.products))
    except ValueError as exc:
        raise SystemExit(f"❌ {exc}")
    return patch_pbxproj_file(args.pbxproj, [package], dry_run=args.dry_run)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    settings = SpmSettings.from_env()
    _configure_logging(args.verbose or settings.verbose)

    try:
        if args.command == "inspect":
            run_inspect(args, settings)
            return
        if args.command == "firebase":
            result = run_firebase(args, settings)
        else:
            result = run_add(args)
    except FileNotFoundError as exc:
        raise SystemExit(f"❌ {exc}")
    except PbxprojError as exc:
        logger.debug("pbxproj failure", exc_info=True)
        raise SystemExit(f"❌ Could not update Xcode project: {exc}")
    except UnicodeDecodeError as exc:
        raise SystemExit(f"❌ project file is not valid UTF-8: {exc}")
    except OSError as exc:
        logger.debug("I/O failure", exc_info=True)
        raise SystemExit(f"❌ {exc}")
    _report(result)


if __name__ == "__main__":
    main()
