"""launchd agent for periodic auto-adopt runs.

The agent runs ``dotctl run`` at load, at login, and every
``schedule_interval`` seconds, at background priority.
"""

import logging
import os
import plistlib
import shutil
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotctl.core.paths import get_launch_agents_dir
from dotctl.core.settings import ENV_PATTERNS_DIR, DotctlSettings
from dotctl.utils.shell import command_exists, output_lines, run_command

logger = logging.getLogger(__name__)

AGENT_LABEL = "io.dotctl.auto-adopt"

_AGENT_PATH = "/usr/local/bin:/usr/bin:/bin:/usr/sbin:/sbin:/opt/homebrew/bin"


@dataclass(frozen=True, slots=True)
class AgentStatus:
    """Install and load state of the agent.

    Attributes:
        plist_path: Location of the agent definition.
        installed: Whether the plist exists.
        loaded: Whether launchd lists the agent.
        pid: Process id if a run is in progress.
        last_exit: Exit status of the previous run, if known.
    """

    plist_path: Path
    installed: bool
    loaded: bool
    pid: int | None = None
    last_exit: int | None = None


def agent_plist_path(settings: DotctlSettings) -> Path:
    """Location of the agent plist in the user's LaunchAgents directory."""
    return get_launch_agents_dir(settings.home) / f"{AGENT_LABEL}.plist"


def program_arguments(config_path: Path | None = None) -> list[str]:
    """Command launchd runs for each scheduled scan.

    Args:
        config_path: Settings file to pass as ``--config``; omitted when None.
    """
    executable = shutil.which("dotctl")
    command = [executable] if executable else [sys.executable, "-m", "dotctl"]
    if config_path is not None:
        command += ["--config", str(config_path.expanduser().absolute())]
    return [*command, "run"]


def build_agent(
    settings: DotctlSettings,
    program: list[str] | None = None,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build the agent definition.

    The agent gets the same settings file and pattern directory override
    as the invoking shell, since launchd starts it with a bare environment.

    Args:
        settings: Runtime settings (interval, home, state and dotfiles dirs).
        program: Command to run; defaults to :func:`program_arguments`.
        config_path: Non-default settings file used at install time.
        env: Environment at install time. If None, uses os.environ.

    Returns:
        Dictionary ready for ``plistlib.dump``.
    """
    environ = os.environ if env is None else env
    variables = {
        "PATH": _AGENT_PATH,
        "HOME": str(settings.home),
        "DOTFILES_DIR": str(settings.dotfiles_dir),
    }
    if environ.get(ENV_PATTERNS_DIR):
        variables[ENV_PATTERNS_DIR] = str(settings.patterns_dir)

    return {
        "Label": AGENT_LABEL,
        "ProgramArguments": program or program_arguments(config_path),
        "StartInterval": settings.schedule_interval,
        "RunAtLoad": True,
        "EnvironmentVariables": variables,
        "StandardOutPath": str(settings.state_dir / "launchd-stdout.log"),
        "StandardErrorPath": str(settings.state_dir / "launchd-stderr.log"),
        "LowPriorityIO": True,
        "ProcessType": "Background",
        "Nice": 10,
    }


class LaunchdScheduler:
    """Installs, removes, and inspects the auto-adopt agent.

    Args:
        settings: Runtime settings.
        config_path: Settings file the agent should load; None for the default.
    """

    def __init__(self, settings: DotctlSettings, config_path: Path | None = None) -> None:
        self._settings = settings
        self._config_path = config_path
        self._plist_path = agent_plist_path(settings)

    @property
    def plist_path(self) -> Path:
        return self._plist_path

    def is_available(self) -> bool:
        """Check if launchctl is available."""
        return command_exists("launchctl")

    def _require_launchctl(self) -> None:
        if not self.is_available():
            msg = "launchctl is not available on this system"
            raise RuntimeError(msg)

    def install(self, program: list[str] | None = None) -> Path:
        """Write the agent plist and load it.

        An already loaded agent is unloaded first so interval changes apply.

        Args:
            program: Command to run; defaults to :func:`program_arguments`.

        Returns:
            Path of the written plist.

        Raises:
            RuntimeError: If launchctl is missing or refuses to load the agent.
        """
        self._require_launchctl()

        self._plist_path.parent.mkdir(parents=True, exist_ok=True)
        self._settings.state_dir.mkdir(parents=True, exist_ok=True)

        if self._plist_path.exists():
            run_command(["launchctl", "unload", str(self._plist_path)])

        with self._plist_path.open("wb") as f:
            plistlib.dump(build_agent(self._settings, program, self._config_path), f)
        logger.info("Wrote launchd agent %s", self._plist_path)

        result = run_command(["launchctl", "load", str(self._plist_path)])
        if not result.success:
            msg = f"launchctl load failed: {result.stderr.strip()}"
            raise RuntimeError(msg)

        return self._plist_path

    def uninstall(self) -> bool:
        """Unload the agent and remove its plist.

        Returns:
            True if a plist was removed, False if none was installed.

        Raises:
            RuntimeError: If launchctl is not available.
        """
        self._require_launchctl()

        if not self._plist_path.exists():
            return False

        if self.status().loaded:
            result = run_command(["launchctl", "unload", str(self._plist_path)])
            if not result.success:
                logger.warning("launchctl unload failed: %s", result.stderr.strip())

        self._plist_path.unlink()
        logger.info("Removed launchd agent %s", self._plist_path)
        return True

    def status(self) -> AgentStatus:
        """Report whether the agent is installed and loaded."""
        installed = self._plist_path.exists()
        if not self.is_available():
            return AgentStatus(self._plist_path, installed=installed, loaded=False)

        result = run_command(["launchctl", "list"])
        if result.success:
            # Columns: PID, last exit status, label
            for line in output_lines(result):
                parts = line.split()
                if len(parts) == 3 and parts[2] == AGENT_LABEL:
                    return AgentStatus(
                        self._plist_path,
                        installed=installed,
                        loaded=True,
                        pid=_int_or_none(parts[0]),
                        last_exit=_int_or_none(parts[1]),
                    )

        return AgentStatus(self._plist_path, installed=installed, loaded=False)


def _int_or_none(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None
