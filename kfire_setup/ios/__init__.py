"""iOS app helpers: project discovery, dependency detection and SPM setup."""

from .project_detection import IosDependencyManager, IosProjectInspector  # noqa: F401
from .settings import SpmSettings  # noqa: F401
from .spm_config import FirebaseIosModules, SpmConfigurator, SpmOutcome, SpmResult  # noqa: F401

__all__ = [
    "FirebaseIosModules",
    "IosDependencyManager",
    "IosProjectInspector",
    "SpmConfigurator",
    "SpmOutcome",
    "SpmResult",
    "SpmSettings",
]
