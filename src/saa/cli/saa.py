"""SA&A Baseline (saa) - security assessment intake decisions.

Reads an intake record (YAML or JSON), decides whether a formal SA&A is
required, selects a security profile and recommends the control baseline.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..catalogue.loader import CatalogueError, get_default_catalogue, load_catalogue
from ..core.config import get_catalogue_dir, get_effective_config
from ..models.catalogue import Catalogue, WebGuidance
from ..models.recommendation import AssessmentPlan

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(ctx: click.Context, message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")
    ctx.exit(2)


def _get_catalogue(ctx: click.Context) -> Catalogue:
    state = ctx.find_object(dict)
    if state.get("catalogue") is None:
        catalogue_dir = get_catalogue_dir(state["config"])
        try:
            state["catalogue"] = load_catalogue(catalogue_dir) if catalogue_dir else get_default_catalogue()
        except CatalogueError as exc:
            for problem in exc.problems:
                console.print(f"  [red]-[/red] {escape(problem)}")
            _fail(ctx, f"invalid control catalogue ({len(exc.problems)} problem(s))")
    return state["catalogue"]


def _read_intake(ctx: click.Context, intake_file: str) -> dict[str, Any]:
    """Load an intake record; JSON is accepted as YAML."""
    try:
        data = yaml.safe_load(Path(intake_file).read_text(encoding="utf-8-sig"))
    except (OSError, yaml.YAMLError) as exc:
        _fail(ctx, f"cannot read intake file {intake_file}: {exc}")
    if not isinstance(data, dict):
        _fail(ctx, f"intake file {intake_file} must contain a mapping")
    return data


def _categorize(ctx: click.Context, intake_file: str):
    from ..core.intake import categorization_from_intake

    intake = _read_intake(ctx, intake_file)
    try:
        return intake, categorization_from_intake(intake)
    except ValueError as exc:
        _fail(ctx, f"invalid intake file {intake_file}: {exc}")


def _print_guidance(guidance: WebGuidance) -> None:
    console.print(f"\n[bold]{guidance.title}[/bold]")
    console.print(guidance.description)
    console.print(
        f"[bold]{guidance.total_required}[/bold] required, "
        f"[bold]{guidance.total_recommended}[/bold] recommended"
    )
    for category in guidance.categories:
        console.print(f"\n[bold cyan]{category.title}[/bold cyan]")
        for item in category.items:
            marker = "[red]required[/red]" if item.required else "[dim]recommended[/dim]"
            console.print(f"  [ ] {item.text} ({marker})")
    if guidance.footer:
        console.print(f"\n[dim]{guidance.footer}[/dim]")


def _print_plan(plan: AssessmentPlan, show_notes: bool, show_evidence: bool) -> None:
    determination = plan.determination
    gate_text = "[red]Required[/red]" if plan.gate.required else "[green]Not required[/green]"
    console.print(f"[bold]Categorization:[/bold] {plan.categorization_label}")
    console.print(f"[bold]Formal SA&A:[/bold] {gate_text} - {plan.gate.reason}")
    console.print(f"[bold]Profile:[/bold] {determination.profile.name} ({determination.profile.id})")
    console.print(f"[bold]Rationale:[/bold] {determination.reason}")
    if show_notes:
        for note in determination.tailoring_notes:
            console.print(f"  [yellow]*[/yellow] {note}")

    if plan.guidance is not None:
        _print_guidance(plan.guidance)
        return

    summary = plan.summary
    table = Table(title=f"Recommended controls ({summary.total})")
    table.add_column("Control", style="bold", no_wrap=True)
    table.add_column("Family")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Inherited from")
    if show_evidence:
        table.add_column("Evidence guidance")
    for rc in plan.controls:
        row = [
            rc.control.id,
            rc.family_name,
            rc.control.title,
            rc.control.priority.value,
            ", ".join(rc.inherited_from),
        ]
        if show_evidence:
            row.append(rc.control.evidence_guidance)
        table.add_row(*row)
    console.print(table)
    console.print(
        f"P1: {summary.p1}  P2: {summary.p2}  P3: {summary.p3}  "
        f"Inherited: {summary.inherited}  Families: {summary.families}"
    )


@click.group()
@click.version_option(__version__, prog_name="saa")
@click.pass_context
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Config file (default: ./saa.yaml)")
@click.option("--catalogue", "catalogue_path", type=click.Path(exists=True, file_okay=False, resolve_path=True), help="Alternate catalogue directory")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def saa_cli(ctx: click.Context, config_path: str | None, catalogue_path: str | None, verbose: bool) -> None:
    """SA&A Baseline - security assessment intake decisions."""
    overrides: dict = {}
    if catalogue_path:
        overrides["catalogue"] = {"path": catalogue_path}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    config = get_effective_config(
        config_path=Path(config_path) if config_path else None,
        cli_overrides=overrides,
    )
    _configure_logging(config["logging"]["level"])
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["catalogue"] = None


@saa_cli.command()
@click.pass_context
@click.argument("intake_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output-format", "-f", type=click.Choice(["table", "markdown", "json"]), help="Output format")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the report to a file")
@click.option("--force", is_flag=True, help="Build a control baseline even when no formal SA&A is required")
def assess(ctx: click.Context, intake_file: str, output_format: Optional[str], output: Optional[str], force: bool) -> None:
    """Full intake decision: gate, profile and recommended controls.

    Example: saa assess intake.yaml -f markdown -o report.md
    """
    from ..core.assessment import plan_assessment
    from ..formatters.json_export import export_plan_json, plan_to_json
    from ..formatters.markdown import export_plan_markdown, render_plan_markdown

    config = ctx.obj["config"]
    output_format = output_format or config["output"]["format"]
    catalogue = _get_catalogue(ctx)
    intake, categorization = _categorize(ctx, intake_file)
    plan = plan_assessment(categorization, catalogue, force=force)

    md_options = {
        "project_name": str(intake.get("project_name") or Path(intake_file).stem),
        "include_evidence_guidance": config["output"]["include_evidence_guidance"],
        "show_tailoring_notes": config["output"]["show_tailoring_notes"],
    }

    if output:
        if output_format == "json":
            result = export_plan_json(plan, Path(output))
        else:
            result = export_plan_markdown(plan, Path(output), **md_options)
        console.print(f"Wrote {result['path']} ({result['controls']} controls)")
    elif output_format == "json":
        click.echo(plan_to_json(plan))
    elif output_format == "markdown":
        click.echo(render_plan_markdown(plan, **md_options))
    else:
        _print_plan(
            plan,
            show_notes=config["output"]["show_tailoring_notes"],
            show_evidence=config["output"]["include_evidence_guidance"],
        )


@saa_cli.command()
@click.pass_context
@click.argument("intake_file", type=click.Path(exists=True, dir_okay=False))
def gate(ctx: click.Context, intake_file: str) -> None:
    """Decide whether a formal SA&A is required."""
    from ..core.gate import requires_formal_assessment

    catalogue = _get_catalogue(ctx)
    _, categorization = _categorize(ctx, intake_file)
    result = requires_formal_assessment(categorization, catalogue)
    verdict = "[red]REQUIRED[/red]" if result.required else "[green]NOT REQUIRED[/green]"
    console.print(f"Formal SA&A {verdict}: {result.reason}")


@saa_cli.command()
@click.pass_context
@click.argument("intake_file", type=click.Path(exists=True, dir_okay=False))
def profile(ctx: click.Context, intake_file: str) -> None:
    """Select the security profile for a project."""
    from ..core.profiles import categorization_full_label, determine_profile

    catalogue = _get_catalogue(ctx)
    _, categorization = _categorize(ctx, intake_file)
    determination = determine_profile(categorization, catalogue)
    label = categorization_full_label(
        categorization.confidentiality, categorization.integrity, categorization.availability, catalogue
    )
    console.print(f"[bold]{determination.profile.name}[/bold] ({determination.profile.id})")
    console.print(f"Categorization: {label}")
    console.print(f"Rationale: {determination.reason}")
    for note in determination.tailoring_notes:
        console.print(f"  [yellow]*[/yellow] {note}")


@saa_cli.command("catalogue")
@click.pass_context
def catalogue_cmd(ctx: click.Context) -> None:
    """Validate the control catalogue and print statistics."""
    catalogue = _get_catalogue(ctx)

    console.print(
        f"[green]Catalogue {catalogue.version} is valid:[/green] "
        f"{len(catalogue)} controls, {len(catalogue.families)} families, "
        f"{len(catalogue.technologies)} technologies"
    )

    per_family = Counter(c.family for c in catalogue.controls)
    families = Table(title="Controls per family")
    families.add_column("Family", style="bold", no_wrap=True)
    families.add_column("Name")
    families.add_column("Controls", justify="right")
    for code in sorted(per_family):
        families.add_row(code, catalogue.family_name(code), str(per_family[code]))
    console.print(families)

    profiles = Table(title="Controls per profile")
    profiles.add_column("Profile", style="bold", no_wrap=True)
    profiles.add_column("Name")
    profiles.add_column("Includes")
    profiles.add_column("Controls", justify="right")
    for profile_id, sec_profile in catalogue.profiles.items():
        count = sum(1 for c in catalogue.controls if c.profiles & sec_profile.includes)
        profiles.add_row(profile_id, sec_profile.name, ", ".join(sorted(sec_profile.includes)), str(count))
    console.print(profiles)


@saa_cli.command()
@click.pass_context
def guidance(ctx: click.Context) -> None:
    """Print the web guidance checklist for projects without a formal SA&A."""
    _print_guidance(_get_catalogue(ctx).web_guidance)


def main() -> None:
    saa_cli()


if __name__ == "__main__":
    main()
