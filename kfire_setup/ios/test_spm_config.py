#!/usr/bin/env python3
"""Tests for locating and patching the iOS app's Xcode project."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from kfire_setup.ios import FirebaseIosModules, SpmConfigurator, SpmOutcome, SpmSettings
from kfire_setup.ios.spm_config import patch_pbxproj_file
from kfire_setup.pbxproj import NoBuildTargetError, PbxprojParseError, SwiftPackage
from kfire_setup.pbxproj.test_pbxproj_utils import CONFIGURED_PBXPROJ, MINIMAL_PBXPROJ, NO_TARGET_PBXPROJ


def _write_project(root: Path, content: str, app_dir: str = "demo/iosApp") -> Path:
    xcodeproj = root / app_dir / "iosApp.xcodeproj"
    xcodeproj.mkdir(parents=True)
    pbxproj = xcodeproj / "project.pbxproj"
    pbxproj.write_bytes(content.encode("utf-8"))
    return pbxproj


class SpmConfiguratorTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.settings = SpmSettings()

    def tearDown(self):
        self._tmp.cleanup()

    def test_locates_project_in_default_dirs(self):
        pbxproj = _write_project(self.root, MINIMAL_PBXPROJ, app_dir="iosApp")
        configurator = SpmConfigurator(self.root, self.settings)
        self.assertEqual(configurator.find_ios_app_directory(), self.root / "iosApp")
        self.assertEqual(configurator.pbxproj_path(), pbxproj)
        self.assertFalse(configurator.has_spm_dependencies())

    def test_configure_writes_firebase_products(self):
        pbxproj = _write_project(self.root, MINIMAL_PBXPROJ)
        configurator = SpmConfigurator(self.root, self.settings)

        result = configurator.configure_spm(FirebaseIosModules(auth=True))

        self.assertEqual(result.outcome, SpmOutcome.CONFIGURED)
        self.assertTrue(result.changed)
        written = pbxproj.read_text(encoding="utf-8")
        self.assertEqual(written, result.content)
        self.assertIn('/* XCRemoteSwiftPackageReference "firebase-ios-sdk" */', written)
        self.assertIn("minimumVersion = 11.6.0;", written)
        self.assertIn("productName = FirebaseCore;", written)
        self.assertIn("productName = FirebaseAuth;", written)
        self.assertTrue(configurator.has_spm_dependencies())

    def test_second_run_is_already_configured(self):
        pbxproj = _write_project(self.root, MINIMAL_PBXPROJ)
        configurator = SpmConfigurator(self.root, self.settings)
        configurator.configure_spm(FirebaseIosModules())
        first = pbxproj.read_bytes()

        result = configurator.configure_spm(FirebaseIosModules(firestore=True))

        self.assertEqual(result.outcome, SpmOutcome.ALREADY_CONFIGURED)
        self.assertFalse(result.changed)
        self.assertEqual(pbxproj.read_bytes(), first)

    def test_dry_run_leaves_file_alone(self):
        pbxproj = _write_project(self.root, MINIMAL_PBXPROJ)
        result = SpmConfigurator(self.root, self.settings).configure_spm(FirebaseIosModules(), dry_run=True)
        self.assertEqual(result.outcome, SpmOutcome.DRY_RUN)
        self.assertTrue(result.changed)
        self.assertEqual(pbxproj.read_text(encoding="utf-8"), MINIMAL_PBXPROJ)

    def test_no_modules_means_nothing_to_add(self):
        pbxproj = _write_project(self.root, MINIMAL_PBXPROJ)
        result = SpmConfigurator(self.root, self.settings).configure_spm(FirebaseIosModules(core=False))
        self.assertEqual(result.outcome, SpmOutcome.NOTHING_TO_ADD)
        self.assertEqual(pbxproj.read_text(encoding="utf-8"), MINIMAL_PBXPROJ)

    def test_missing_project_raises(self):
        with self.assertRaises(FileNotFoundError):
            SpmConfigurator(self.root, self.settings).configure_spm(FirebaseIosModules())

    def test_custom_app_dirs(self):
        pbxproj = _write_project(self.root, MINIMAL_PBXPROJ, app_dir="apps/ios")
        settings = SpmSettings(ios_app_dirs=("apps/ios",))
        self.assertEqual(SpmConfigurator(self.root, settings).pbxproj_path(), pbxproj)
        self.assertIsNone(SpmConfigurator(self.root, self.settings).pbxproj_path())


class PatchPbxprojFileTests(unittest.TestCase):
    PACKAGE = SwiftPackage("https://github.com/onevcat/Kingfisher.git", "8.1.0", ("Kingfisher",))

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_failure_leaves_file_untouched(self):
        pbxproj = _write_project(self.root, NO_TARGET_PBXPROJ)
        with self.assertRaises(NoBuildTargetError):
            patch_pbxproj_file(pbxproj, [self.PACKAGE])
        self.assertEqual(pbxproj.read_text(encoding="utf-8"), NO_TARGET_PBXPROJ)

    def test_parse_error_propagates(self):
        pbxproj = _write_project(self.root, "// !$*UTF8*$!\n{\n}\n")
        with self.assertRaises(PbxprojParseError):
            patch_pbxproj_file(pbxproj, [self.PACKAGE])

    def test_configured_project_is_skipped(self):
        pbxproj = _write_project(self.root, CONFIGURED_PBXPROJ)
        result = patch_pbxproj_file(pbxproj, [self.PACKAGE])
        self.assertEqual(result.outcome, SpmOutcome.ALREADY_CONFIGURED)

    def test_crlf_file_round_trips(self):
        crlf = MINIMAL_PBXPROJ.replace("\n", "\r\n")
        pbxproj = _write_project(self.root, crlf)
        patch_pbxproj_file(pbxproj, [self.PACKAGE])
        written = pbxproj.read_bytes()
        self.assertNotIn(b"\r\r\n", written)
        self.assertEqual(written.count(b"\n"), written.count(b"\r\n"))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            patch_pbxproj_file(self.root / "missing.pbxproj", [self.PACKAGE])


class FirebaseModulesTests(unittest.TestCase):
    def test_product_order_follows_module_table(self):
        modules = FirebaseIosModules.from_names(["crashlytics", "core", "Auth", "remote-config"])
        self.assertEqual(
            modules.product_names(),
            ["FirebaseCore", "FirebaseAuth", "FirebaseRemoteConfig", "FirebaseCrashlytics"],
        )

    def test_unknown_module(self):
        with self.assertRaises(ValueError):
            FirebaseIosModules.from_names(["core", "ml-kit"])

    def test_default_is_core_only(self):
        self.assertEqual(FirebaseIosModules().product_names(), ["FirebaseCore"])


class SpmSettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = SpmSettings.from_env({})
        self.assertEqual(settings.firebase_repo_url, "https://github.com/firebase/firebase-ios-sdk.git")
        self.assertEqual(settings.firebase_version, "11.6.0")
        self.assertEqual(settings.ios_app_dirs, ("demo/iosApp", "iosApp"))
        self.assertFalse(settings.verbose)

    def test_overrides(self):
        settings = SpmSettings.from_env(
            {
                "KFIRE_FIREBASE_SPM_URL": "https://mirror.example.com/firebase-ios-sdk.git",
                "KFIRE_FIREBASE_SPM_VERSION": " 10.29.0 ",
                "KFIRE_IOS_APP_DIRS": "apps/ios, ,iosApp",
                "KFIRE_VERBOSE": "yes",
            }
        )
        self.assertEqual(settings.firebase_repo_url, "https://mirror.example.com/firebase-ios-sdk.git")
        self.assertEqual(settings.firebase_version, "10.29.0")
        self.assertEqual(settings.ios_app_dirs, ("apps/ios", "iosApp"))
        self.assertTrue(settings.verbose)

    def test_blank_values_fall_back(self):
        settings = SpmSettings.from_env({"KFIRE_FIREBASE_SPM_VERSION": "  ", "KFIRE_IOS_APP_DIRS": ","})
        self.assertEqual(settings.firebase_version, "11.6.0")
        self.assertEqual(settings.ios_app_dirs, ("demo/iosApp", "iosApp"))


if __name__ == "__main__":
    unittest.main()
