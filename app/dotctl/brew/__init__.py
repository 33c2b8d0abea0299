"""Homebrew convergence: Brewfile parsing, observed state, and installs."""

from dotctl.brew.artifacts import lookup_cask_artifact, parse_cask_artifact
from dotctl.brew.brewfile import (
    BrewfileError,
    BrewfileNotFoundError,
    BrewfileParseError,
    load_brewfile,
    parse_brewfile,
)
from dotctl.brew.convergence import ConvergenceChecker, converge
from dotctl.brew.models import (
    ArtifactKind,
    BrewfileEntry,
    BrewKind,
    CaskArtifact,
    ConvergenceItem,
    ConvergencePlan,
    ConvergenceState,
    DesiredPackageSpec,
    InstallReport,
    InstallResult,
    ObservedInstallState,
)
from dotctl.brew.operator import BrewOperator
from dotctl.brew.scanner import BrewScanner

__all__ = [
    "ArtifactKind",
    "BrewKind",
    "BrewOperator",
    "BrewScanner",
    "BrewfileEntry",
    "BrewfileError",
    "BrewfileNotFoundError",
    "BrewfileParseError",
    "CaskArtifact",
    "ConvergenceChecker",
    "ConvergenceItem",
    "ConvergencePlan",
    "ConvergenceState",
    "DesiredPackageSpec",
    "InstallReport",
    "InstallResult",
    "ObservedInstallState",
    "converge",
    "load_brewfile",
    "lookup_cask_artifact",
    "parse_brewfile",
    "parse_cask_artifact",
]
