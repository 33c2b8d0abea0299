"""Shared Rich display functions for reports and plans.

Provides reusable table builders and summary printers for the adoption
report, classification previews, the Homebrew convergence plan, and the
status overview.
"""

from rich.markup import escape
from rich.table import Table

from dotctl.adopt.models import (
    AdoptionDecision,
    AdoptionReport,
    AdoptionResult,
    DecisionAction,
    PatternSet,
)
from dotctl.brew.models import (
    AppAuditReport,
    ConvergencePlan,
    ConvergenceState,
    InstallResult,
)
from dotctl.core.audit import AuditLog
from dotctl.core.settings import DotctlSettings
from dotctl.utils.formatting import console, format_verdict, print_success

# Decisions worth a row in the run table; ignored and managed entries are only counted
_REPORTED_ACTIONS: frozenset[DecisionAction] = frozenset(
    {
        DecisionAction.ADOPT,
        DecisionAction.SKIP_SENSITIVE,
        DecisionAction.SKIP_UNKNOWN,
        DecisionAction.SKIP_UNRESOLVED,
    }
)

_STATE_STYLES: dict[ConvergenceState, tuple[str, str]] = {
    ConvergenceState.TO_INSTALL: ("added", "+install"),
    ConvergenceState.SATISFIED: ("success", "ok"),
    ConvergenceState.UNVERIFIABLE: ("warning", "skip"),
}


def create_report_table(report: AdoptionReport) -> Table:
    """Create a Rich table of the decisions of one adoption run.

    Args:
        report: Report returned by the adoption engine.

    Returns:
        Rich Table with one row per adopted, withheld, or skipped path.
    """
    title = "Auto-Adopt (Dry Run)" if report.dry_run else "Auto-Adopt"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Verdict", width=10)
    table.add_column("Path", no_wrap=True)
    table.add_column("Package")
    table.add_column("Result")

    results = {r.rel_path: r for r in report.results}

    for decision in report.decisions:
        if decision.action not in _REPORTED_ACTIONS:
            continue

        verdict = format_verdict(decision.verdict.value) if decision.verdict else ""
        package = decision.package.name if decision.package else ""
        table.add_row(verdict, escape(decision.rel_path), package, _result_text(decision, results))

    return table


def _result_text(decision: AdoptionDecision, results: dict[str, AdoptionResult]) -> str:
    if not decision.is_adopt:
        return f"[muted]{escape(decision.reason or '')}[/muted]"

    result = results.get(decision.rel_path)
    if result is None:
        return ""
    if result.failed:
        return f"[error]{escape(result.error or '')}[/error]"
    if result.dry_run:
        return "[info]would adopt[/info]"
    return "[success]adopted[/success]"


def print_report_summary(report: AdoptionReport, audit: AuditLog) -> None:
    """Print the one-line run summary and where details are logged."""
    summary = report.summary()
    counts = ", ".join(f"{key}={value}" for key, value in summary.items())

    if report.dry_run:
        console.print(f"\nDry run complete: {report.adopted} would be adopted ({counts})")
        return

    console.print(f"\nSummary: {counts}")
    if report.failed:
        console.print(f"[error]{report.failed} adoption(s) failed and were rolled back[/error]")
    console.print(f"[muted]Details: {audit.path}[/muted]")


def create_plan_table(plan: ConvergencePlan) -> Table:
    """Create a Rich table of a Homebrew convergence plan."""
    table = Table(
        title="Brewfile Convergence",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("State", width=9, justify="center")
    table.add_column("Kind", width=5)
    table.add_column("Name", no_wrap=True)
    table.add_column("Reason")

    for item in plan.items:
        style, label = _STATE_STYLES[item.state]
        table.add_row(
            f"[{style}]{label}[/{style}]",
            item.entry.kind.value,
            item.entry.name,
            f"[muted]{item.reason}[/muted]",
        )

    return table


def print_plan_summary(plan: ConvergencePlan) -> None:
    """Print counts of a convergence plan."""
    console.print(
        f"\n[added]{len(plan.to_install)} to install[/added], "
        f"[success]{len(plan.satisfied)} satisfied[/success], "
        f"[warning]{len(plan.unverifiable)} unverifiable[/warning]"
    )


def create_install_table(results: list[InstallResult]) -> Table:
    """Create a Rich table of install results."""
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Kind", width=5)
    table.add_column("Name", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
            message = result.message or ""
        else:
            status = "[error]FAIL[/error]"
            message = result.error or "Unknown error"

        table.add_row(
            status,
            result.entry.kind.value,
            result.entry.name,
            f"[muted]{escape(message)}[/muted]",
        )

    return table


def print_install_summary(results: list[InstallResult]) -> None:
    """Print a summary of install results."""
    success_count = sum(1 for r in results if r.success)
    fail_count = sum(1 for r in results if r.failed)

    if fail_count == 0:
        print_success(f"All {success_count} install(s) completed successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )


def print_status(settings: DotctlSettings, patterns: PatternSet, audit: AuditLog) -> None:
    """Print pattern counts, directories, last run, and recent log lines.

    Args:
        settings: Runtime settings.
        patterns: Loaded pattern lists.
        audit: Audit log to summarize.
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold_header")
    table.add_column("Value")

    table.add_row("Home", str(settings.home))
    table.add_row("Managed storage", str(settings.stow_dir))
    table.add_row("Patterns", str(settings.patterns_dir))
    table.add_row("Audit log", str(audit.path))
    table.add_row(
        "Rules",
        f"{len(patterns.sensitive)} sensitive, {len(patterns.ignore)} ignore, "
        f"{len(patterns.adopt)} adopt",
    )
    if patterns.missing:
        missing = ", ".join(which.filename for which in patterns.missing)
        table.add_row("Missing", f"[warning]{missing}[/warning]")

    last_run = audit.last_run()
    table.add_row("Last run", last_run.strftime("%Y-%m-%d %H:%M:%S") if last_run else "never")

    console.print(table)

    lines = audit.tail(5)
    if lines:
        console.print("\n[bold_header]Recent activity[/bold_header]")
        for line in lines:
            console.print(f"  [muted]{escape(line)}[/muted]", highlight=False)


def create_app_audit_table(report: AppAuditReport) -> Table:
    """Create a Rich table of applications missing from the Brewfile."""
    table = Table(
        title="Applications not in Brewfile",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Application", no_wrap=True)
    table.add_column("Suggested entry")

    for app in report.untracked:
        table.add_row(escape(app.bundle), f'[muted]cask "{escape(app.suggested_cask)}"[/muted]')

    return table


def print_app_audit_summary(report: AppAuditReport) -> None:
    """Print counts of an application audit."""
    console.print(
        f"\n[success]{len(report.tracked)} in Brewfile[/success], "
        f"[warning]{len(report.untracked)} not in Brewfile[/warning]"
    )
