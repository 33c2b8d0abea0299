"""Cask artifact resolution from ``brew info --cask`` output.

The artifacts section lists what a cask installs, for example::

    ==> Artifacts
    WezTerm.app (App)
    qbittorrent.app -> qBittorrent.app (App)
    Docker.pkg (Pkg)
"""

import logging
import subprocess

from dotctl.brew.models import ArtifactKind, CaskArtifact
from dotctl.utils.shell import run_command

logger = logging.getLogger(__name__)

_APP_SUFFIX = " (App)"
_INSTALLER_MARKERS: tuple[str, ...] = ("(Pkg)", "(Installer)")
_ALIAS_ARROW = "->"

# brew info can hit the network for cask metadata
_INFO_TIMEOUT: float = 120.0


def parse_cask_artifact(info: str) -> CaskArtifact:
    """Extract the primary artifact from ``brew info --cask`` output.

    The first ``.app (App)`` line wins. An arrow form
    ``alias.app -> Real.app (App)`` resolves to the target name.

    Args:
        info: Full command output.

    Returns:
        CaskArtifact; UNKNOWN if no app or installer line is present.
    """
    lines = [line.strip() for line in info.splitlines()]

    for line in lines:
        if not line.endswith(_APP_SUFFIX):
            continue
        name = line[: -len(_APP_SUFFIX)].strip()
        if _ALIAS_ARROW in name:
            alias, _, target = name.partition(_ALIAS_ARROW)
            return CaskArtifact(ArtifactKind.APP, app_name=target.strip(), alias=alias.strip())
        return CaskArtifact(ArtifactKind.APP, app_name=name)

    if any(marker in line for line in lines for marker in _INSTALLER_MARKERS):
        return CaskArtifact(ArtifactKind.INSTALLER)

    return CaskArtifact(ArtifactKind.UNKNOWN)


def lookup_cask_artifact(cask: str) -> CaskArtifact:
    """Query Homebrew for the artifact a cask installs.

    Lookup failures are not fatal: the cask is treated as UNKNOWN and
    falls through to installation.

    Args:
        cask: Cask token.

    Returns:
        CaskArtifact for the cask.
    """
    try:
        result = run_command(["brew", "info", "--cask", cask], timeout=_INFO_TIMEOUT)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("brew info --cask %s failed: %s", cask, e)
        return CaskArtifact(ArtifactKind.UNKNOWN)

    if not result.success:
        logger.debug("brew info --cask %s exited %d", cask, result.returncode)
        return CaskArtifact(ArtifactKind.UNKNOWN)

    return parse_cask_artifact(result.stdout)
