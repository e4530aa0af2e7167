from .base import ReleaseSource
from .github import GitHubReleasesSource

__all__ = [
    "GitHubReleasesSource",
    "ReleaseSource",
]
