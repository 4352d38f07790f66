"""
pystarter Command Line Interface.

This module provides the CLI entry point for creating and checking
Python projects.
"""

import asyncio
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from pystarter.version import __version__

console = Console()


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


def _fail(message: str, verbose: bool = False) -> None:
    console.print(f"[red]Error:[/red] {message}")
    if verbose:
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="pystarter")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """pystarter: set up Python projects the conventional way.

    Creates the virtual environment, requirements files, README,
    .gitignore, .env and a first test, then checks projects against
    the same checklist.
    """
    from pystarter.config import ConfigurationError, load_config, load_config_from_env
    from pystarter.utils import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        cfg = load_config(config_path) if config_path else load_config_from_env()
    except (ConfigurationError, FileNotFoundError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    setup_logging(cfg.logging, verbose=verbose)
    ctx.obj["config"] = cfg


_SCAFFOLD_OPTIONS = [
    click.option(
        "--layout",
        type=click.Choice(["flat", "src"]),
        default=None,
        help="Source layout (default from configuration)",
    ),
    click.option("--description", "-d", default=None, help="One-line project description"),
    click.option("--author", "-a", default=None, help="Project author"),
    click.option("--no-venv", is_flag=True, help="Do not create a virtual environment"),
    click.option("--no-git", is_flag=True, help="Do not initialize a git repository"),
    click.option(
        "--install/--no-install",
        default=None,
        help="Install requirements into the new virtual environment",
    ),
    click.option("--force", is_flag=True, help="Overwrite existing generated files"),
    click.option("--dry-run", is_flag=True, help="Show the plan without writing anything"),
]


def _scaffold_options(func):
    """Options shared by `new` and `init`."""
    for option in reversed(_SCAFFOLD_OPTIONS):
        func = option(func)
    return func


def _apply_overrides(cfg, layout, description, author, no_venv, no_git, install):
    """Copy of the configuration with command line overrides applied."""
    from pystarter.config import Layout

    cfg = cfg.model_copy(deep=True)
    if layout:
        cfg.project.layout = Layout(layout)
    if description is not None:
        cfg.project.description = description
    if author is not None:
        cfg.project.author = author
    if no_venv:
        cfg.python.create_venv = False
    if install is not None:
        cfg.python.install_requirements = install
    if no_git:
        cfg.git.init = False
    return cfg


def _run_scaffold(ctx, root: Path, project_name: str, cfg, new: bool, force: bool, dry_run: bool) -> None:
    from pystarter.files import EnvFileError, ManifestError
    from pystarter.scaffold import ActionKind, ProjectScaffolder, ScaffoldError
    from pystarter.tools import VirtualEnv

    verbose = ctx.obj.get("verbose", False)

    console.print(
        Panel(
            f"[bold blue]pystarter v{__version__}[/bold blue]\n"
            f"{'Creating' if new else 'Completing'} project [bold]{project_name}[/bold]",
            title="pystarter",
        )
    )

    try:
        scaffolder = ProjectScaffolder(cfg, root, project_name=project_name)
        if new:
            scaffolder.ensure_new_target(force=force)
        plan = scaffolder.plan(force=force)
    except (ScaffoldError, ManifestError, EnvFileError) as e:
        _fail(str(e), verbose)

    settings_table = Table(show_header=False, box=None)
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value", style="green")
    settings_table.add_row("Location", str(root.resolve()))
    settings_table.add_row("Package", scaffolder.package_name)
    settings_table.add_row("Layout", cfg.project.layout.value)
    settings_table.add_row("Test runner", cfg.tools.test_runner.value)
    if dry_run:
        settings_table.add_row("Mode", "[yellow]Dry Run[/yellow]")
    console.print(settings_table)
    console.print()

    plan_table = Table(title="Plan", show_header=True)
    plan_table.add_column("Action", style="cyan")
    plan_table.add_column("Target", style="green")
    plan_table.add_column("Detail", style="dim")
    styles = {
        ActionKind.MKDIR: "blue",
        ActionKind.WRITE: "green",
        ActionKind.MERGE: "yellow",
        ActionKind.SKIP: "dim",
        ActionKind.COMMAND: "magenta",
    }
    for action in plan.actions:
        style = styles[action.kind]
        plan_table.add_row(f"[{style}]{action.kind.value}[/{style}]", action.target, action.detail)
    console.print(plan_table)

    if dry_run:
        console.print("[yellow]Dry run: nothing was written.[/yellow]")
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as progress:
        progress.add_task("Setting up project...", total=None)
        try:
            report = scaffolder.apply(plan)
        except (ScaffoldError, ManifestError, EnvFileError, OSError) as e:
            _fail(str(e), verbose)

    summary_table = Table(title="Summary", show_header=False, box=None)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Created", str(len(report.created)))
    summary_table.add_row("Merged", str(len(report.merged)))
    summary_table.add_row("Skipped", str(len(report.skipped)))
    summary_table.add_row("Commands", str(len(report.commands)))
    console.print(summary_table)

    for path, added in report.merged.items():
        if added:
            console.print(f"[yellow]{path}:[/yellow] added {', '.join(added)}")
    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    console.print()
    console.print("[bold]Next steps[/bold]")
    if new:
        console.print(f"  cd {root}")
    if cfg.python.create_venv:
        venv = VirtualEnv(Path(cfg.python.venv_dir))
        console.print(f"  {venv.activation_command('bash')}")
        if not cfg.python.install_requirements:
            console.print("  pip install -r requirements.txt -r requirements-dev.txt")
    context = scaffolder.context()
    console.print(f"  {context.run_command}")
    console.print(f"  {context.test_command}")


@main.command()
@click.argument("name")
@click.option(
    "--path",
    "-p",
    type=click.Path(file_okay=False),
    default=None,
    help="Parent directory (default: current directory)",
)
@_scaffold_options
@click.pass_context
def new(ctx, name, path, layout, description, author, no_venv, no_git, install, force, dry_run) -> None:
    """Create a new project directory NAME."""
    cfg = _apply_overrides(ctx.obj["config"], layout, description, author, no_venv, no_git, install)
    root = Path(path or ".") / name
    _run_scaffold(ctx, root, name, cfg, new=True, force=force, dry_run=dry_run)


@main.command()
@click.argument("path", type=click.Path(file_okay=False), default=".")
@_scaffold_options
@click.pass_context
def init(ctx, path, layout, description, author, no_venv, no_git, install, force, dry_run) -> None:
    """Add the missing project files to an existing directory PATH."""
    cfg = _apply_overrides(ctx.obj["config"], layout, description, author, no_venv, no_git, install)
    root = Path(path)
    _run_scaffold(ctx, root, root.resolve().name, cfg, new=False, force=force, dry_run=dry_run)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--strict", is_flag=True, help="Treat warnings as failures")
@click.pass_context
def doctor(ctx, path: str, strict: bool) -> None:
    """Check the project at PATH against the setup checklist."""
    from pystarter.doctor import CheckStatus, ProjectDoctor

    report = ProjectDoctor(Path(path), ctx.obj["config"]).run()

    table = Table(title=f"Project checks: {Path(path).resolve()}", show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    table.add_column("Fix", style="dim")
    badges = {
        CheckStatus.PASS: "[green]pass[/green]",
        CheckStatus.WARN: "[yellow]warn[/yellow]",
        CheckStatus.FAIL: "[red]fail[/red]",
        CheckStatus.SKIP: "[dim]skip[/dim]",
    }
    for result in report.results:
        table.add_row(result.name, badges[result.status], result.message, result.hint)
    console.print(table)

    counts = report.counts()
    console.print(
        f"[green]{counts['pass']} passed[/green], [yellow]{counts['warn']} warnings[/yellow], "
        f"[red]{counts['fail']} failed[/red], {counts['skip']} skipped"
    )

    if not report.ok or (strict and not report.clean):
        sys.exit(1)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--show-values", is_flag=True, help="Show secret values unmasked")
@click.pass_context
def env(ctx, path: str, show_values: bool) -> None:
    """List the variables in PATH/.env (secrets masked)."""
    from pystarter.files import EnvFileError, is_secret_key, mask_value, read_env_file

    try:
        values = read_env_file(Path(path) / ".env")
    except EnvFileError as e:
        _fail(str(e), ctx.obj.get("verbose", False))

    table = Table(title=".env", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Secret", style="dim")
    for key, value in values.items():
        shown = value if show_values else mask_value(key, value)
        table.add_row(key, "" if shown is None else shown, "yes" if is_secret_key(key) else "")
    console.print(table)


@main.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--dev", is_flag=True, help="Add to requirements-dev.txt")
@click.option(
    "--path",
    "-p",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Project directory",
)
@click.pass_context
def add(ctx, packages: tuple[str, ...], dev: bool, path: str) -> None:
    """Add requirement specifiers to the requirements file."""
    from pystarter.files import ManifestError, RequirementsFile, parse_requirement

    verbose = ctx.obj.get("verbose", False)
    target = Path(path) / ("requirements-dev.txt" if dev else "requirements.txt")

    try:
        manifest = RequirementsFile.load(target, missing_ok=True)
        if dev and not target.exists():
            manifest.entries.append("-r requirements.txt")
        for spec in packages:
            requirement = parse_requirement(spec)
            if manifest.add(requirement):
                console.print(f"[green]+[/green] {requirement}")
            else:
                console.print(f"[dim]= {requirement} (unchanged)[/dim]")
        manifest.save(target)
    except ManifestError as e:
        _fail(str(e), verbose)

    console.print(f"[green]Updated:[/green] {target}")


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--all", "pin_all", is_flag=True, help="Re-pin requirements that are already pinned")
@click.option("--dev", is_flag=True, help="Pin requirements-dev.txt instead")
@click.option("--index-url", default=None, help="PyPI JSON API base URL")
@click.pass_context
def pin(ctx, path: str, pin_all: bool, dev: bool, index_url: str | None) -> None:
    """Pin requirements to their latest release on PyPI."""
    from pystarter.config import load_environment
    from pystarter.files import ManifestError, RequirementsFile
    from pystarter.utils import PackageIndexClient, pin_requirements

    verbose = ctx.obj.get("verbose", False)
    cfg = ctx.obj["config"]
    target = Path(path) / ("requirements-dev.txt" if dev else "requirements.txt")

    try:
        manifest = RequirementsFile.load(target)
    except (FileNotFoundError, ManifestError) as e:
        _fail(str(e), verbose)

    environment = load_environment()
    base_url = index_url or environment.pypi_url or cfg.pypi.index_url
    token = environment.pypi_token.get_secret_value() if environment.pypi_token else None

    async def _pin():
        async with PackageIndexClient(
            base_url=base_url,
            timeout=cfg.pypi.timeout,
            max_retries=cfg.pypi.max_retries,
            token=token,
        ) as client:
            return await pin_requirements(manifest, client, only_unpinned=not pin_all)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as progress:
        progress.add_task(f"Querying {base_url}...", total=None)
        report = run_async(_pin())

    if report.pinned:
        manifest.save(target)

    table = Table(title=f"Pinned {target.name}", show_header=True)
    table.add_column("Package", style="cyan")
    table.add_column("Result")
    for name, version in report.pinned.items():
        table.add_row(name, f"[green]=={version}[/green]")
    for name, error in report.failed.items():
        table.add_row(name, f"[red]{error}[/red]")
    for name in report.unchanged:
        table.add_row(name, "[dim]unchanged[/dim]")
    console.print(table)

    if not report.ok:
        sys.exit(1)


def _project_python(root: Path, cfg) -> str:
    from pystarter.tools import VirtualEnv

    venv = VirtualEnv(root / cfg.python.venv_dir)
    return str(venv.python) if venv.exists else sys.executable


def _print_output(result) -> None:
    output = (result.stdout + result.stderr).strip()
    if output:
        console.print(output, markup=False, highlight=False)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--fix", is_flag=True, help="Reformat files instead of only checking")
@click.pass_context
def lint(ctx, path: str, fix: bool) -> None:
    """Run the formatter and linter over PATH."""
    from pystarter.tools import CommandRunner, QualityTools, ToolError

    cfg = ctx.obj["config"]
    root = Path(path)
    tools = QualityTools(
        CommandRunner(timeout_seconds=cfg.tools.timeout_seconds),
        _project_python(root, cfg),
        formatter=cfg.tools.formatter,
        linter=cfg.tools.linter,
    )

    try:
        format_result = tools.format(["."], cwd=root, check=not fix)
        lint_result = tools.lint(["."], cwd=root, exclude=[cfg.python.venv_dir, ".venv"])
    except ToolError as e:
        _fail(str(e), ctx.obj.get("verbose", False))

    for label, result in ((cfg.tools.formatter, format_result), (cfg.tools.linter, lint_result)):
        status = "[green]ok[/green]" if result.ok else "[red]failed[/red]"
        console.print(f"[bold]{label}[/bold]: {status}")
        _print_output(result)

    if not (format_result.ok and lint_result.ok):
        sys.exit(1)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.pass_context
def test(ctx, path: str) -> None:
    """Run the project's tests with the configured runner."""
    from pystarter.tools import CommandRunner, QualityTools, ToolError

    cfg = ctx.obj["config"]
    root = Path(path)
    tools = QualityTools(
        CommandRunner(timeout_seconds=cfg.tools.timeout_seconds),
        _project_python(root, cfg),
    )

    try:
        result = tools.test(cfg.tools.test_runner.value, cwd=root)
    except ToolError as e:
        _fail(str(e), ctx.obj.get("verbose", False))

    _print_output(result)
    sys.exit(result.returncode)


@main.command()
@click.pass_context
def config(ctx) -> None:
    """Display the effective configuration."""
    from pystarter.config import get_loader

    cfg = ctx.obj["config"]
    loader = get_loader()
    source = loader.loaded_from_path if loader and loader.loaded_from_path else "built-in defaults"

    console.print(
        Panel(
            "[bold blue]pystarter Configuration[/bold blue]\n"
            f"[dim]Source: {source}[/dim]",
            title="Configuration",
        )
    )
    text = yaml.safe_dump(cfg.to_yaml_dict(), default_flow_style=False, sort_keys=False)
    console.print(Syntax(text, "yaml", background_color="default"))


if __name__ == "__main__":
    main()
