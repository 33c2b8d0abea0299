"""Package name inference for adopted paths.

Heuristics are applied in a fixed order: an explicit mapping always
wins, then grouped config directories, then the ``.<name>rc`` and
``.<name>.conf`` shapes, then the generic leading token.
"""

import re

from dotctl.adopt.models import PatternRule
from dotctl.adopt.patterns import first_match

_RC_FILE = re.compile(r"^\.([a-z]+)rc$")
_CONF_FILE = re.compile(r"^\.([a-z]+)\.conf$")
_TOKEN_DELIMITERS = re.compile(r"[._]")


class ResolutionError(ValueError):
    """Raised when no usable package name can be derived for a path."""

    def __init__(self, rel_path: str, name: str) -> None:
        self.rel_path = rel_path
        self.name = name
        super().__init__(f"Could not determine package name for: {rel_path}")


class PackageNameResolver:
    """Infers the managed package a home-relative path belongs to.

    Args:
        mappings: Adopt rules carrying an explicit package name, in file order.
        grouped_dirs: Directories whose children each form their own package.
    """

    def __init__(
        self,
        mappings: tuple[PatternRule, ...] = (),
        grouped_dirs: tuple[str, ...] = (".config",),
    ) -> None:
        self._mappings = tuple(rule for rule in mappings if rule.package_hint)
        self._grouped_dirs = tuple(d.rstrip("/") for d in grouped_dirs)

    def resolve(self, rel_path: str) -> str:
        """Resolve the package name for a path.

        Args:
            rel_path: Path relative to the home directory.

        Returns:
            Package name.

        Raises:
            ResolutionError: If the inferred name is empty or degenerate.
        """
        name = self._infer(rel_path.strip("/"))
        if not name or name in (".", ".."):
            raise ResolutionError(rel_path, name)
        return name

    def _infer(self, rel_path: str) -> str:
        rule = first_match(rel_path, self._mappings)
        if rule is not None and rule.package_hint:
            return rule.package_hint

        for group in self._grouped_dirs:
            prefix = f"{group}/"
            if rel_path.startswith(prefix):
                return rel_path[len(prefix) :].split("/", 1)[0]

        rc_match = _RC_FILE.match(rel_path)
        if rc_match:
            return rc_match.group(1)

        conf_match = _CONF_FILE.match(rel_path)
        if conf_match:
            return conf_match.group(1)

        token = rel_path.split("/", 1)[0].removeprefix(".")
        return _TOKEN_DELIMITERS.split(token, maxsplit=1)[0]
