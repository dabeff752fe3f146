#!/usr/bin/env python3
# flowfix/cli.py

import copy
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from flowfix.registry.nodes import ALL_NODES, CATEGORIES, get_nodes_by_category, search_nodes
from flowfix.repair.processor import get_detailed_report, process_workflow
from flowfix.utils.ids import PlaceholderGenerator
from flowfix.utils.io import WORKFLOW_SUFFIXES, load_workflow, save_workflow, write_json
from flowfix.utils.logger import init_logger, get_logger
from flowfix.validator import get_validation_summary, validate_workflow

app = typer.Typer(help="FlowFix CLI - Validate and auto-repair n8n workflow JSON")
log = get_logger("cli")


@app.callback()
def main(
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write logs to <dir>/flowfix.log"),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level (overrides LOG_LEVEL)"),
):
    """Validate and repair workflow documents."""
    init_logger(level=logging.DEBUG if debug else None, log_dir=log_dir)


def _load(path: Path) -> Any:
    try:
        return load_workflow(path)
    except (json.JSONDecodeError, yaml.YAMLError, ValueError) as e:
        log.error("could not read %s: %s", path, e)
        raise typer.Exit(code=2)


def _print_issues(result) -> None:
    for issue in result.issues:
        where = f" ({issue.node_name or issue.node_id})" if issue.node_id else ""
        print(f"- [{issue.severity}] {issue.code}{where}: {issue.message}")


@app.command()
def validate(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List every issue"),
):
    """
    Run structure, graph and parameter validation without changing anything.
    Exits with code 1 when the workflow has errors.
    """
    wf = _load(input)
    result = validate_workflow(wf)

    print(get_validation_summary(result))
    if verbose and result.issues:
        print("Detected issues:")
        _print_issues(result)

    if report is not None:
        payload = {"input": str(input), **result.to_dict()}
        write_json(report, payload)
        print(f"[ok] wrote report to {report}")

    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def fix(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Where to write the repaired workflow"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON processing report to this path"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for generated ids and webhook paths"),
    no_fix: bool = typer.Option(False, "--no-fix", help="Only validate, never modify the workflow"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print the detailed report"),
):
    """
    Validate a workflow, repair what can be repaired and validate again.
    Exits with code 1 when errors remain after the fix pass.
    """
    if seed is not None and seed < 0:
        raise typer.BadParameter(f"Invalid seed {seed}. Use a non-negative integer.")
    if out is not None and out.suffix.lower() not in WORKFLOW_SUFFIXES:
        raise typer.BadParameter(f"Invalid output '{out}'. Use one of: {', '.join(WORKFLOW_SUFFIXES)}")

    wf = _load(input)
    result = process_workflow(wf, auto_fix=not no_fix, generator=PlaceholderGenerator(seed))

    print(get_detailed_report(result) if verbose else result.summary)

    if out is not None and not no_fix:
        save_workflow(out, wf)
        print(f"[ok] wrote workflow to {out}")

    if report is not None:
        write_json(report, {"input": str(input), **result.to_dict()})
        print(f"[ok] wrote report to {report}")

    if not result.final_validation.is_valid:
        raise typer.Exit(code=1)


@app.command()
def bench(
    glob: str = typer.Option("bench/scenarios/*/workflow.json", "--glob", help="Glob for workflow files"),
    out: Path = typer.Option(Path("experiments/results/fix_report.csv"), "--out", help="CSV path to write results"),
    seed: Optional[int] = typer.Option(0, "--seed", help="Seed for generated ids and webhook paths"),
    dump_fixed: bool = typer.Option(False, "--dump-fixed", help="Write <case>/fixed.json next to each input"),
):
    """
    Batch process workflows and export a CSV report
    (errors before/after, warnings, changes, validity).
    """
    import glob as _glob
    import pandas as pd

    rows = []
    for fp_str in sorted(_glob.glob(glob)):
        fp = Path(fp_str)
        wf = _load(fp)

        if not isinstance(wf, dict) or "nodes" not in wf:
            log.warning("%s does not look like a workflow (missing 'nodes'); skipping", fp)
            continue

        fixed = copy.deepcopy(wf)
        result = process_workflow(fixed, generator=PlaceholderGenerator(seed))
        before, after = result.original_validation, result.final_validation

        rows.append({
            "id": fp.parent.name,
            "errors_before": len(before.errors),
            "warnings_before": len(before.warnings),
            "errors_after": len(after.errors),
            "warnings_after": len(after.warnings),
            "parameters_filled": result.parameter_fixes.parameters_filled,
            "properties_normalized": result.parameter_fixes.properties_normalized,
            "connections_added": result.connection_fixes.connections_added,
            "connections_removed": result.connection_fixes.connections_removed,
            "changes": result.total_changes,
            "valid": after.is_valid,
        })
        log.info("[%s] errors %d -> %d, %d change(s)", fp.parent.name, len(before.errors),
                 len(after.errors), result.total_changes)

        if dump_fixed:
            save_workflow(fp.parent / "fixed.json", fixed)

    out.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows).to_csv(out, index=False)
    print(f"[ok] wrote {out}")


@app.command()
def nodes(
    category: Optional[str] = typer.Option(None, "--category", "-c", help=f"One of: {', '.join(CATEGORIES)}"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match type, name, description or keywords"),
    as_json: bool = typer.Option(False, "--json", help="Print full definitions as JSON"),
):
    """List the node types the validator knows about."""
    if category is not None and category not in CATEGORIES:
        raise typer.BadParameter(f"Invalid category '{category}'. Choose one of: {', '.join(CATEGORIES)}")

    if search:
        found = search_nodes(search)
        if category:
            found = [d for d in found if d.category == category]
    elif category:
        found = get_nodes_by_category(category)
    else:
        found = list(ALL_NODES)

    if as_json:
        print(json.dumps([d.to_dict() for d in found], ensure_ascii=False, indent=2))
        return

    for d in found:
        required = ", ".join(p.name for p in d.required_parameters) or "-"
        print(f"{d.type:<34} {d.category:<12} {d.display_name:<20} required: {required}")
    print(f"{len(found)} node type(s)")


if __name__ == "__main__":
    app()
