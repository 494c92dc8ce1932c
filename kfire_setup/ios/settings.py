"""Shared, typed configuration for the iOS setup commands.

Environment overrides live here so the defaults stay discoverable instead of
spreading one-off globals across modules.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

DEFAULT_FIREBASE_REPO_URL = "https://github.com/firebase/firebase-ios-sdk.git"
DEFAULT_FIREBASE_VERSION = "11.6.0"
DEFAULT_IOS_APP_DIRS = ("demo/iosApp", "iosApp")


def _truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on", "y"}


def _split_dirs(value: str | None) -> Tuple[str, ...]:
    if not value:
        return DEFAULT_IOS_APP_DIRS
    dirs = tuple(part.strip() for part in value.split(",") if part.strip())
    return dirs or DEFAULT_IOS_APP_DIRS


@dataclass(frozen=True)
class SpmSettings:
    firebase_repo_url: str = DEFAULT_FIREBASE_REPO_URL
    firebase_version: str = DEFAULT_FIREBASE_VERSION
    ios_app_dirs: Tuple[str, ...] = DEFAULT_IOS_APP_DIRS
    verbose: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SpmSettings":
        """Build settings from the environment with sensible defaults."""
        env = os.environ if environ is None else environ
        return cls(
            firebase_repo_url=env.get("KFIRE_FIREBASE_SPM_URL", DEFAULT_FIREBASE_REPO_URL).strip()
            or DEFAULT_FIREBASE_REPO_URL,
            firebase_version=env.get("KFIRE_FIREBASE_SPM_VERSION", DEFAULT_FIREBASE_VERSION).strip()
            or DEFAULT_FIREBASE_VERSION,
            ios_app_dirs=_split_dirs(env.get("KFIRE_IOS_APP_DIRS")),
            verbose=_truthy(env.get("KFIRE_VERBOSE")),
        )


__all__ = [
    "DEFAULT_FIREBASE_REPO_URL",
    "DEFAULT_FIREBASE_VERSION",
    "DEFAULT_IOS_APP_DIRS",
    "SpmSettings",
]
