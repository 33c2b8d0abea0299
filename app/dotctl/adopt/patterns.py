"""Pattern store and matcher for auto-adopt classification.

Pattern files hold one rule per line. Blank lines and ``#`` comments are
skipped, and a rule may name its package after the first ``:``::

    .zshrc
    .config/*
    .gitconfig:git
    *token*

Matching follows shell-glob semantics with two additions: ``dir/*`` also
matches the bare ``dir``, and ``*text*`` is a literal substring test.
"""

import fnmatch
import logging
from importlib import resources
from pathlib import Path

from dotctl.adopt.models import PatternList, PatternRule, PatternSet
from dotctl.core.errors import PatternsDirMissingError

logger = logging.getLogger(__name__)

MAPPING_DELIMITER = ":"


def parse_rule(line: str) -> PatternRule | None:
    """Parse one pattern-file line into a rule.

    Args:
        line: Raw line from a pattern file.

    Returns:
        PatternRule, or None for blank and comment lines.
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    pattern, sep, package = text.partition(MAPPING_DELIMITER)
    pattern = pattern.strip()
    if not pattern:
        logger.warning("Ignoring rule with empty pattern: %r", line)
        return None

    hint = package.strip() if sep else ""
    return PatternRule(pattern=pattern, package_hint=hint or None)


def parse_rules(text: str) -> tuple[PatternRule, ...]:
    """Parse pattern-file content into an ordered tuple of rules."""
    rules: list[PatternRule] = []
    for line in text.splitlines():
        rule = parse_rule(line)
        if rule is not None:
            rules.append(rule)
    return tuple(rules)


def load_rules(path: Path) -> tuple[PatternRule, ...] | None:
    """Load rules from a pattern file.

    Args:
        path: Pattern file to read.

    Returns:
        Ordered rules, or None if the file does not exist.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return parse_rules(text)


def load_patterns(patterns_dir: Path, *, require_dir: bool = False) -> PatternSet:
    """Load the sensitive, ignore, and adopt lists from a directory.

    A missing pattern file yields an empty list so the scan can proceed
    with whatever rules exist.

    Args:
        patterns_dir: Directory holding sensitive.txt, ignore.txt, adopt.txt.
        require_dir: If True, a missing directory is a setup failure.

    Returns:
        PatternSet with the three ordered rule lists.

    Raises:
        PatternsDirMissingError: If require_dir is set and the directory is absent.
    """
    if require_dir and not patterns_dir.is_dir():
        raise PatternsDirMissingError(patterns_dir)

    lists: dict[PatternList, tuple[PatternRule, ...]] = {}
    missing: list[PatternList] = []

    for which in PatternList:
        source = patterns_dir / which.filename
        rules = load_rules(source)
        if rules is None:
            logger.info("Pattern file not found, using empty %s list: %s", which.value, source)
            missing.append(which)
            rules = ()
        lists[which] = rules

    return PatternSet(
        sensitive=lists[PatternList.SENSITIVE],
        ignore=lists[PatternList.IGNORE],
        adopt=lists[PatternList.ADOPT],
        missing=tuple(missing),
    )


def matches_pattern(path: str, pattern: str) -> bool:
    """Check whether a home-relative path matches one pattern.

    Args:
        path: Path relative to home (e.g. ``.config/starship``).
        pattern: Glob-like pattern.

    Returns:
        True if the path matches.
    """
    if fnmatch.fnmatchcase(path, pattern):
        return True

    if pattern.endswith("/*"):
        dir_pattern = pattern[:-2]
        if fnmatch.fnmatchcase(path, dir_pattern) or fnmatch.fnmatchcase(
            path, f"{dir_pattern}/*"
        ):
            return True

    if len(pattern) >= 2 and pattern.startswith("*") and pattern.endswith("*"):
        if pattern[1:-1] in path:
            return True

    return False


def first_match(path: str, rules: tuple[PatternRule, ...]) -> PatternRule | None:
    """Return the first rule in list order that matches the path."""
    for rule in rules:
        if matches_pattern(path, rule.pattern):
            return rule
    return None


def bundled_pattern_text(which: PatternList) -> str:
    """Read one of the default pattern files shipped with dotctl."""
    source = resources.files("dotctl.data").joinpath("patterns", which.filename)
    return source.read_text(encoding="utf-8")


def install_default_patterns(patterns_dir: Path) -> list[Path]:
    """Copy the bundled default pattern files into a directory.

    Existing files are left untouched.

    Args:
        patterns_dir: Destination directory (created if needed).

    Returns:
        Paths of the files that were written.
    """
    patterns_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for which in PatternList:
        target = patterns_dir / which.filename
        if target.exists():
            logger.debug("Keeping existing pattern file %s", target)
            continue
        target.write_text(bundled_pattern_text(which), encoding="utf-8")
        written.append(target)
    return written
