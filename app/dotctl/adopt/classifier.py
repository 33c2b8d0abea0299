"""Rule-based classification of home-relative paths.

Lists are evaluated in fixed priority order (sensitive, ignore, adopt)
and the first list with a matching rule decides the verdict. Pattern
specificity is never considered.
"""

from dotctl.adopt.models import Classification, PatternList, PatternSet, Verdict
from dotctl.adopt.patterns import first_match

# Evaluation order; earlier lists dominate later ones.
_PRIORITY: tuple[tuple[PatternList, Verdict], ...] = (
    (PatternList.SENSITIVE, Verdict.SENSITIVE),
    (PatternList.IGNORE, Verdict.IGNORE),
    (PatternList.ADOPT, Verdict.ADOPT),
)


class Classifier:
    """Maps home-relative paths to verdicts using a loaded PatternSet.

    The classifier never touches the filesystem, so the same path and
    pattern set always produce the same verdict.

    Example:
        >>> classifier = Classifier(load_patterns(settings.patterns_dir))
        >>> classifier.classify(".ssh/id_ed25519").verdict
        <Verdict.SENSITIVE: 'sensitive'>
    """

    def __init__(self, patterns: PatternSet) -> None:
        self._patterns = patterns

    @property
    def patterns(self) -> PatternSet:
        """The pattern set this classifier evaluates."""
        return self._patterns

    def classify(self, rel_path: str) -> Classification:
        """Classify a home-relative path.

        Args:
            rel_path: Path relative to the home directory.

        Returns:
            Classification with the verdict and the matching rule.
        """
        for which, verdict in _PRIORITY:
            rule = first_match(rel_path, self._patterns.rules(which))
            if rule is not None:
                return Classification(path=rel_path, verdict=verdict, rule=rule)
        return Classification(path=rel_path, verdict=Verdict.UNKNOWN)

    def verdict(self, rel_path: str) -> Verdict:
        """Shorthand for ``classify(rel_path).verdict``."""
        return self.classify(rel_path).verdict
