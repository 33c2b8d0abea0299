"""Auto-adopt: classify home-directory dotfiles and move them into managed storage."""

from dotctl.adopt.classifier import Classifier
from dotctl.adopt.engine import AdoptionEngine, AdoptionRefusedError
from dotctl.adopt.models import (
    AdoptionDecision,
    AdoptionReport,
    AdoptionResult,
    Candidate,
    Classification,
    DecisionAction,
    ManagedPackage,
    PatternList,
    PatternRule,
    PatternSet,
    Verdict,
)
from dotctl.adopt.operator import AdoptionOperator
from dotctl.adopt.patterns import install_default_patterns, load_patterns, matches_pattern
from dotctl.adopt.resolver import PackageNameResolver, ResolutionError
from dotctl.adopt.scanner import HomeScanner

__all__ = [
    "AdoptionDecision",
    "AdoptionEngine",
    "AdoptionOperator",
    "AdoptionRefusedError",
    "AdoptionReport",
    "AdoptionResult",
    "Candidate",
    "Classification",
    "Classifier",
    "DecisionAction",
    "HomeScanner",
    "ManagedPackage",
    "PackageNameResolver",
    "PatternList",
    "PatternRule",
    "PatternSet",
    "ResolutionError",
    "Verdict",
    "install_default_patterns",
    "load_patterns",
    "matches_pattern",
]
