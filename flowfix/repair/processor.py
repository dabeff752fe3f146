# flowfix/repair/processor.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flowfix.repair.connections import ConnectionFixReport, fix_connections
from flowfix.repair.parameters import ParameterFixReport, fill_missing_parameters
from flowfix.structural.checker import critical_issues
from flowfix.structural.issues import ValidationResult
from flowfix.utils.ids import PlaceholderGenerator
from flowfix.utils.logger import get_logger
from flowfix.validator import get_validation_summary, validate_workflow

log = get_logger("processor")


@dataclass
class ProcessingReport:
    original_validation: ValidationResult
    final_validation: ValidationResult
    connection_fixes: ConnectionFixReport = field(default_factory=ConnectionFixReport)
    parameter_fixes: ParameterFixReport = field(default_factory=ParameterFixReport)
    total_changes: int = 0
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_validation": self.original_validation.to_dict(),
            "final_validation": self.final_validation.to_dict(),
            "connection_fixes": self.connection_fixes.to_dict(),
            "parameter_fixes": self.parameter_fixes.to_dict(),
            "total_changes": self.total_changes,
            "summary": self.summary,
        }


def process_workflow(
    workflow: Any,
    auto_fix: bool = True,
    generator: Optional[PlaceholderGenerator] = None,
) -> ProcessingReport:
    """
    Validate, and when the issues are fixable, repair in place and validate
    again. Parameters are filled before connections are rewired.
    """
    original = validate_workflow(workflow)
    report = ProcessingReport(original_validation=original, final_validation=original)

    # fix hints on a document without a usable node array cannot be acted on
    blocked = critical_issues(original)
    if auto_fix and original.fixable and not blocked:
        report.parameter_fixes = fill_missing_parameters(workflow, generator)
        report.connection_fixes = fix_connections(workflow)
        report.final_validation = validate_workflow(workflow)
        report.total_changes = (
            report.parameter_fixes.parameters_filled
            + report.parameter_fixes.properties_normalized
            + report.connection_fixes.connections_added
            + report.connection_fixes.connections_removed
        )
        log.debug(
            "auto-fix: %d change(s), errors %d -> %d",
            report.total_changes, len(original.errors), len(report.final_validation.errors),
        )
    elif blocked:
        log.debug("auto-fix skipped, critical structural issue(s): %s", ", ".join(blocked))

    report.summary = _build_summary(report)
    return report


def _build_summary(report: ProcessingReport) -> str:
    original = report.original_validation
    final = report.final_validation
    lines: List[str] = ["Original Validation:", f"  {get_validation_summary(original)}"]

    if original.errors:
        lines.append(f"  {len(original.errors)} error(s) found")
    if original.warnings:
        lines.append(f"  {len(original.warnings)} warning(s) found")

    params, conn = report.parameter_fixes, report.connection_fixes
    if params.fixed or conn.fixed:
        lines += ["", "Auto-Fixes Applied:"]
        if params.parameters_filled:
            lines.append(f"  ✓ Filled {params.parameters_filled} parameter(s)")
        if params.properties_normalized:
            lines.append(f"  ✓ Normalized {params.properties_normalized} workflow/node field(s)")
        if conn.connections_added:
            lines.append(f"  ✓ Added {conn.connections_added} connection(s)")
        if conn.connections_removed:
            lines.append(f"  ✓ Removed {conn.connections_removed} invalid connection(s)")
        if conn.fixed and not (conn.connections_added or conn.connections_removed):
            lines.append("  ✓ Reset the connections object")

        lines += ["", "Final Validation:", f"  {get_validation_summary(final)}"]

    if final.errors or final.warnings:
        lines += ["", "Remaining Issues:"]
        if final.errors:
            lines.append(f"  {len(final.errors)} error(s) - manual review required")
        if final.warnings:
            lines.append(f"  {len(final.warnings)} warning(s) - check configuration")

    return "\n".join(lines)


def get_detailed_report(report: ProcessingReport) -> str:
    """Summary followed by every change made and every issue left."""
    lines: List[str] = ["=== WORKFLOW PROCESSING REPORT ===", "", report.summary]

    for title, changes in (
        ("Parameter Changes:", report.parameter_fixes.changes),
        ("Connection Changes:", report.connection_fixes.changes),
    ):
        if changes:
            lines += ["", title]
            lines += [f"  • {c}" for c in changes]

    final = report.final_validation
    if final.errors:
        lines += ["", "Remaining Errors:"]
        for issue in final.errors:
            lines.append(f"  ✗ [{issue.code}] {issue.message}")
            if issue.node_id:
                lines.append(f"    Node: {issue.node_name or issue.node_id}")
            if issue.fix:
                lines.append(f"    Suggested fix: {issue.fix}")

    if final.warnings:
        lines += ["", "Warnings:"]
        for issue in final.warnings:
            lines.append(f"  ⚠ [{issue.code}] {issue.message}")
            if issue.node_id:
                lines.append(f"    Node: {issue.node_name or issue.node_id}")

    return "\n".join(lines)
