"""
Project Scaffolder.

Creates the standard project tree (sources, tests, manifests, README,
.gitignore, .env) and then runs the external setup commands: virtual
environment creation, dependency installation and git initialization.
"""

import logging
from pathlib import Path

from pystarter.config.environment import load_environment
from pystarter.config.models import Layout, PystarterConfig, TestRunner
from pystarter.files.envfile import EnvFileError, example_env, format_env, merge_env_file, read_env_file
from pystarter.files.gitignore import GitIgnore
from pystarter.files.requirements import ManifestError, RequirementsFile
from pystarter.files.templates import TemplateContext, TemplateEngine
from pystarter.scaffold.plan import (
    ActionKind,
    MergeStrategy,
    ScaffoldAction,
    ScaffoldError,
    ScaffoldPlan,
    ScaffoldReport,
    derive_package_name,
)
from pystarter.tools.git import GitRepository
from pystarter.tools.runner import CommandRunner, ToolError
from pystarter.tools.venv import Pip, VirtualEnv

logger = logging.getLogger(__name__)

RUNTIME_BASELINE = ["python-dotenv"]

ENV_HEADER = "Local settings. Never commit this file."


class ProjectScaffolder:
    """Plans and applies the project layout for a directory.

    Usage:
        scaffolder = ProjectScaffolder(config, Path("my-project"))
        plan = scaffolder.plan()
        report = scaffolder.apply(plan)
    """

    def __init__(
        self,
        config: PystarterConfig,
        root: str | Path,
        runner: CommandRunner | None = None,
        engine: TemplateEngine | None = None,
        project_name: str | None = None,
    ) -> None:
        self.config = config
        # Commands run with cwd=root, so every path handed to them is absolute
        self.root = Path(root).resolve()
        self.runner = runner or CommandRunner(timeout_seconds=config.tools.timeout_seconds)
        self.engine = engine or TemplateEngine()
        self.project_name = project_name or self.root.name
        self.package_name = derive_package_name(self.project_name)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def context(self) -> TemplateContext:
        """Template values derived from the configuration and project name."""
        cfg = self.config
        return TemplateContext(
            project_name=self.project_name,
            package_name=self.package_name,
            description=cfg.project.description,
            author=cfg.project.author,
            python_version=cfg.python.min_version,
            venv_dir=cfg.python.venv_dir,
            layout=cfg.project.layout.value,
            test_runner=cfg.tools.test_runner.value,
            formatter=cfg.tools.formatter,
            linter=cfg.tools.linter,
            env_keys=list(cfg.env.variables),
        )

    def ensure_new_target(self, force: bool = False) -> None:
        """Refuse to create a new project inside a non-empty directory.

        Raises:
            ScaffoldError: If root is a file, or a non-empty dir without force
        """
        if self.root.is_file():
            raise ScaffoldError(f"Target exists and is a file: {self.root}")
        if self.root.is_dir() and any(self.root.iterdir()) and not force:
            raise ScaffoldError(
                f"Directory {self.root} is not empty. Use --force or 'pystarter init'."
            )

    def requirements_manifest(self) -> RequirementsFile:
        """requirements.txt content: python-dotenv plus the configured requirements."""
        manifest = RequirementsFile()
        for spec in RUNTIME_BASELINE + self.config.dependencies.requirements:
            manifest.add(spec, replace=False)
        return manifest

    def dev_requirements_manifest(self) -> RequirementsFile:
        """requirements-dev.txt content.

        Starts with ``-r requirements.txt``; pytest is added when it is the
        configured test runner.
        """
        manifest = RequirementsFile(["-r requirements.txt"])
        dev = list(self.config.dependencies.dev_requirements)
        if self.config.tools.test_runner == TestRunner.PYTEST:
            dev.append("pytest")
        for spec in dev:
            manifest.add(spec, replace=False)
        return manifest

    def gitignore(self) -> GitIgnore:
        """Default Python patterns, the venv directory and configured extras."""
        return GitIgnore.build_default(
            venv_dir=self.config.python.venv_dir,
            extra=self.config.gitignore.extra_patterns,
        )

    def _managed_files(self) -> list[tuple[str, str, MergeStrategy | None]]:
        env_values = dict(self.config.env.variables)
        return [
            ("requirements.txt", self.requirements_manifest().dumps(), MergeStrategy.REQUIREMENTS),
            ("requirements-dev.txt", self.dev_requirements_manifest().dumps(), MergeStrategy.REQUIREMENTS),
            (".gitignore", self.gitignore().dumps(), MergeStrategy.GITIGNORE),
            (".env", format_env(env_values, header=ENV_HEADER), MergeStrategy.ENV),
            (".env.example", format_env(example_env(env_values)), None),
        ]

    def plan(self, force: bool = False) -> ScaffoldPlan:
        """Build the plan without touching the filesystem.

        Args:
            force: Overwrite existing template files (merged files are
                always merged, never overwritten)

        Raises:
            ScaffoldError: If the root exists as a file, or a file that
                would be merged into cannot be parsed
        """
        if self.root.is_file():
            raise ScaffoldError(f"Target exists and is a file: {self.root}")

        plan = ScaffoldPlan()
        context = self.context()

        directories = ["tests"]
        if self.config.project.layout == Layout.SRC:
            directories.insert(0, f"src/{self.package_name}")
        for directory in directories:
            if not (self.root / directory).is_dir():
                plan.add(ScaffoldAction(ActionKind.MKDIR, directory, "create directory"))

        for relative, content in self.engine.render_all(context):
            target = self.root / relative
            if target.exists() and not force:
                plan.add(ScaffoldAction(ActionKind.SKIP, relative, "already exists"))
            else:
                detail = "overwrite" if target.exists() else "create file"
                plan.add(ScaffoldAction(ActionKind.WRITE, relative, detail, content=content))

        for relative, content, strategy in self._managed_files():
            target = self.root / relative
            if not target.exists():
                plan.add(ScaffoldAction(ActionKind.WRITE, relative, "create file", content=content))
            elif strategy is not None:
                self._load_existing(relative, strategy)
                plan.add(
                    ScaffoldAction(
                        ActionKind.MERGE,
                        relative,
                        "add missing entries",
                        content=content,
                        strategy=strategy,
                    )
                )
            elif force:
                plan.add(ScaffoldAction(ActionKind.WRITE, relative, "overwrite", content=content))
            else:
                plan.add(ScaffoldAction(ActionKind.SKIP, relative, "already exists"))

        for label, detail in self._planned_commands():
            plan.add(ScaffoldAction(ActionKind.COMMAND, label, detail))

        return plan

    def _planned_commands(self) -> list[tuple[str, str]]:
        cfg = self.config
        commands = []
        venv_dir = cfg.python.venv_dir
        if cfg.python.create_venv:
            commands.append(("venv", f"python -m venv {venv_dir}"))
            if cfg.python.install_requirements:
                commands.append(("pip", f"{venv_dir}/bin/python -m pip install -r requirements.txt"))
        if cfg.git.init:
            commands.append(("git-init", f"git init -b {cfg.git.initial_branch}"))
            if cfg.git.initial_commit:
                commands.append(("git-commit", f'git add . && git commit -m "{cfg.git.commit_message}"'))
        return commands

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    def apply(
        self,
        plan: ScaffoldPlan | None = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> ScaffoldReport:
        """Execute a plan.

        File actions run first. External commands run afterwards; their
        failures are reported as warnings so written files are kept.
        """
        plan = plan or self.plan(force=force)
        report = ScaffoldReport(dry_run=dry_run)

        if not dry_run:
            self.root.mkdir(parents=True, exist_ok=True)

        for action in plan.actions:
            if action.kind == ActionKind.COMMAND:
                continue
            if action.kind == ActionKind.SKIP:
                report.skipped.append(action.target)
                continue
            if dry_run:
                if action.kind == ActionKind.MERGE:
                    report.merged[action.target] = []
                else:
                    report.created.append(action.target)
                continue
            self._apply_file_action(action, report)

        commands = {a.target for a in plan.of_kind(ActionKind.COMMAND)}
        if commands and not dry_run:
            self._run_commands(commands, report)

        logger.info(
            "Scaffold finished: %d created, %d merged, %d skipped",
            len(report.created),
            len(report.merged),
            len(report.skipped),
        )
        return report

    def _apply_file_action(self, action: ScaffoldAction, report: ScaffoldReport) -> None:
        target = self.root / action.target
        if action.kind == ActionKind.MKDIR:
            target.mkdir(parents=True, exist_ok=True)
            report.created.append(action.target)
        elif action.kind == ActionKind.WRITE:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(action.content or "", encoding="utf-8")
            report.created.append(action.target)
        elif action.kind == ActionKind.MERGE:
            report.merged[action.target] = self._merge(target, action)

    def _load_existing(self, relative: str, strategy: MergeStrategy) -> RequirementsFile | GitIgnore | dict:
        """Parse a file that is about to be merged into.

        Raises:
            ScaffoldError: If the file is not valid UTF-8 or does not parse
        """
        target = self.root / relative
        try:
            if strategy == MergeStrategy.REQUIREMENTS:
                return RequirementsFile.load(target)
            if strategy == MergeStrategy.GITIGNORE:
                return GitIgnore.load(target)
            return read_env_file(target)
        except (ManifestError, EnvFileError, UnicodeDecodeError) as e:
            raise ScaffoldError(f"Cannot merge into {relative}: {e}") from e

    def _merge(self, target: Path, action: ScaffoldAction) -> list[str]:
        existing = self._load_existing(action.target, action.strategy)
        if action.strategy == MergeStrategy.REQUIREMENTS:
            added = existing.merge(RequirementsFile.parse(action.content or ""))
        elif action.strategy == MergeStrategy.GITIGNORE:
            added = existing.merge(GitIgnore.parse(action.content or ""))
        elif action.strategy == MergeStrategy.ENV:
            return merge_env_file(target, dict(self.config.env.variables))
        else:
            raise ScaffoldError(f"No merge strategy for {action.target}")
        if added:
            existing.save(target)
        return added

    def _run_commands(self, commands: set[str], report: ScaffoldReport) -> None:
        cfg = self.config

        if "venv" in commands:
            venv = VirtualEnv(self.root / cfg.python.venv_dir)
            try:
                result = venv.create(self.runner)
                if result is not None:
                    report.commands.append(result)
                if "pip" in commands:
                    pip = Pip(venv, self.runner)
                    report.commands.append(
                        pip.install_requirements(self.root / "requirements.txt", cwd=self.root)
                    )
            except ToolError as e:
                logger.warning("Virtual environment setup failed: %s", e)
                report.warnings.append(f"Virtual environment setup failed: {e}")

        if "git-init" in commands:
            repo = GitRepository(self.root, self.runner)
            try:
                if not repo.is_repository():
                    report.commands.append(repo.init(cfg.git.initial_branch))
                if "git-commit" in commands and not repo.has_commits():
                    report.commands.append(repo.add())
                    author = load_environment().git_author
                    report.commands.append(repo.commit(cfg.git.commit_message, author=author))
            except ToolError as e:
                logger.warning("Git initialization failed: %s", e)
                report.warnings.append(f"Git initialization failed: {e}")
