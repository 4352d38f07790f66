"""Tests for the command line interface."""

from pathlib import Path

import pytest
import respx
from click.testing import CliRunner
from httpx import Response

from pystarter.cli import main
from pystarter.files import RequirementsFile, read_env_file
from pystarter.version import __version__


@pytest.fixture
def cli(tmp_path: Path, monkeypatch) -> CliRunner:
    """CLI runner working inside an empty temporary directory."""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def scaffolded(cli: CliRunner, tmp_path: Path) -> Path:
    result = cli.invoke(main, ["new", "hello-world", "--no-venv", "--no-git"])
    assert result.exit_code == 0, result.output
    return tmp_path / "hello-world"


class TestMain:
    def test_version(self, cli):
        result = cli.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, cli):
        result = cli.invoke(main, ["--help"])
        for command in ("new", "init", "doctor", "env", "add", "pin", "lint", "test", "config"):
            assert command in result.output

    def test_invalid_config_file(self, cli, tmp_path: Path):
        (tmp_path / "bad.yaml").write_text("tools:\n  test_runner: nose\n")
        result = cli.invoke(main, ["-c", "bad.yaml", "config"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_config_shows_defaults(self, cli):
        result = cli.invoke(main, ["config"])
        assert result.exit_code == 0
        assert "built-in defaults" in result.output
        assert "venv_dir: venv" in result.output

    def test_invalid_requirement_in_config(self, cli, tmp_path: Path):
        (tmp_path / "pystarter.yaml").write_text("dependencies:\n  requirements: [\"requests>>2\"]\n")
        result = cli.invoke(main, ["new", "demo", "--no-venv", "--no-git"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert "dependencies.requirements" in result.output
        assert not (tmp_path / "demo").exists()

    def test_config_from_file(self, cli, tmp_path: Path):
        (tmp_path / "pystarter.yaml").write_text("python:\n  venv_dir: .venv\n")
        result = cli.invoke(main, ["config"])
        assert "pystarter.yaml" in result.output
        assert "venv_dir: .venv" in result.output


class TestNew:
    def test_creates_project(self, scaffolded: Path):
        assert (scaffolded / "main.py").is_file()
        assert (scaffolded / "tests" / "test_main.py").is_file()
        assert (scaffolded / "README.md").read_text().startswith("# hello-world")
        assert not (scaffolded / "venv").exists()
        assert not (scaffolded / ".git").exists()

    def test_next_steps(self, cli):
        result = cli.invoke(main, ["new", "demo", "--no-venv", "--no-git"])
        assert "Next steps" in result.output
        assert "python main.py" in result.output

    def test_src_layout_with_overrides(self, cli, tmp_path: Path):
        result = cli.invoke(
            main,
            ["new", "my-app", "--layout", "src", "-d", "My app", "-a", "Ada", "--no-venv", "--no-git"],
        )
        assert result.exit_code == 0, result.output
        root = tmp_path / "my-app"
        assert (root / "src" / "my_app" / "main.py").is_file()
        assert (root / "src" / "my_app" / "__init__.py").read_text() == '"""My app"""\n'
        assert "Author: Ada" in (root / "README.md").read_text()

    def test_dry_run(self, cli, tmp_path: Path):
        result = cli.invoke(main, ["new", "demo", "--dry-run"])
        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert not (tmp_path / "demo").exists()

    def test_refuses_non_empty_directory(self, cli, tmp_path: Path):
        (tmp_path / "demo").mkdir()
        (tmp_path / "demo" / "notes.txt").write_text("x")
        result = cli.invoke(main, ["new", "demo", "--no-venv", "--no-git"])
        assert result.exit_code == 1
        assert "not empty" in result.output

    def test_parent_path(self, cli, tmp_path: Path):
        (tmp_path / "projects").mkdir()
        result = cli.invoke(main, ["new", "demo", "--path", "projects", "--no-venv", "--no-git"])
        assert result.exit_code == 0
        assert (tmp_path / "projects" / "demo" / "main.py").is_file()


class TestInit:
    def test_completes_existing_directory(self, cli, tmp_path: Path):
        project = tmp_path / "legacy"
        project.mkdir()
        (project / "main.py").write_text("print('legacy')\n")
        (project / "requirements.txt").write_text("requests==2.31.0\n")

        result = cli.invoke(main, ["init", "legacy", "--no-venv", "--no-git"])

        assert result.exit_code == 0, result.output
        assert (project / "main.py").read_text() == "print('legacy')\n"
        assert RequirementsFile.load(project / "requirements.txt").names == ["requests", "python-dotenv"]
        assert (project / ".gitignore").is_file()
        assert read_env_file(project / ".env") == {"DEBUG": "True", "SECRET_KEY": ""}
        assert "python-dotenv" in result.output

    def test_invalid_requirements_stops_before_writing(self, cli, tmp_path: Path):
        project = tmp_path / "legacy"
        project.mkdir()
        (project / "requirements.txt").write_text("requests>>2\n")

        result = cli.invoke(main, ["init", "legacy", "--no-venv", "--no-git"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert sorted(p.name for p in project.iterdir()) == ["requirements.txt"]

    def test_undecodable_gitignore(self, cli, tmp_path: Path):
        project = tmp_path / "legacy"
        project.mkdir()
        (project / ".gitignore").write_bytes(b"caf\xe9\n")

        result = cli.invoke(main, ["init", "legacy", "--no-venv", "--no-git"])

        assert result.exit_code == 1
        assert not (project / "main.py").exists()


class TestDoctor:
    def test_fresh_project_passes(self, cli, scaffolded: Path):
        result = cli.invoke(main, ["doctor", str(scaffolded)])
        assert result.exit_code == 0, result.output
        assert "passed" in result.output

    def test_strict_fails_on_warnings(self, cli, scaffolded: Path):
        result = cli.invoke(main, ["doctor", str(scaffolded), "--strict"])
        assert result.exit_code == 1

    def test_missing_readme_fails(self, cli, scaffolded: Path):
        (scaffolded / "README.md").unlink()
        result = cli.invoke(main, ["doctor", str(scaffolded)])
        assert result.exit_code == 1


class TestEnv:
    def test_masks_secrets(self, cli, tmp_path: Path):
        (tmp_path / ".env").write_text("DEBUG=True\nSECRET_KEY=supersecret\n")
        result = cli.invoke(main, ["env"])
        assert result.exit_code == 0
        assert "su****" in result.output
        assert "supersecret" not in result.output

    def test_show_values(self, cli, tmp_path: Path):
        (tmp_path / ".env").write_text("SECRET_KEY=supersecret\n")
        result = cli.invoke(main, ["env", "--show-values"])
        assert "supersecret" in result.output

    def test_missing_env_file(self, cli):
        result = cli.invoke(main, ["env"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestAdd:
    def test_add_and_replace(self, cli, tmp_path: Path):
        (tmp_path / "requirements.txt").write_text("# deps\nrequests\n")
        result = cli.invoke(main, ["add", "requests==2.31.0", "flask>=3"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "requirements.txt").read_text() == "# deps\nrequests==2.31.0\nflask>=3\n"

    def test_add_dev_creates_file(self, cli, tmp_path: Path):
        result = cli.invoke(main, ["add", "--dev", "pytest"])
        assert result.exit_code == 0
        assert (tmp_path / "requirements-dev.txt").read_text() == "-r requirements.txt\npytest\n"

    def test_invalid_specifier(self, cli, tmp_path: Path):
        result = cli.invoke(main, ["add", "requests>>2"])
        assert result.exit_code == 1
        assert not (tmp_path / "requirements.txt").exists()


class TestPin:
    @pytest.fixture(autouse=True)
    def mock_index(self):
        with respx.mock(assert_all_called=False) as router:
            router.get("https://pypi.org/pypi/missing/json").mock(return_value=Response(404))
            router.get(url__startswith="https://pypi.org/pypi/").mock(
                return_value=Response(200, json={"info": {"version": "9.9.9"}})
            )
            yield router

    def test_pin(self, cli, tmp_path: Path):
        (tmp_path / "requirements.txt").write_text("requests\nflask==3.0.0\n")
        result = cli.invoke(main, ["pin"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "requirements.txt").read_text() == "requests==9.9.9\nflask==3.0.0\n"

    def test_pin_failure_exit_code(self, cli, tmp_path: Path):
        (tmp_path / "requirements.txt").write_text("requests\nmissing\n")
        result = cli.invoke(main, ["pin"])
        assert result.exit_code == 1
        assert "requests==9.9.9" in (tmp_path / "requirements.txt").read_text()

    def test_missing_manifest(self, cli):
        result = cli.invoke(main, ["pin"])
        assert result.exit_code == 1

    def test_index_url_option(self, cli, tmp_path: Path, mock_index):
        route = mock_index.get("https://index.test/simple-json/requests/json").mock(
            return_value=Response(200, json={"info": {"version": "1.2.3"}})
        )
        (tmp_path / "requirements.txt").write_text("requests\n")
        result = cli.invoke(main, ["pin", "--index-url", "https://index.test/simple-json"])
        assert result.exit_code == 0, result.output
        assert route.called
        assert (tmp_path / "requirements.txt").read_text() == "requests==1.2.3\n"


class TestLintAndTest:
    @pytest.fixture
    def patched_runner(self, monkeypatch, fake_runner):
        monkeypatch.setattr("pystarter.tools.CommandRunner", lambda timeout_seconds=300: fake_runner)
        return fake_runner

    def test_lint_checks_by_default(self, cli, patched_runner):
        result = cli.invoke(main, ["lint"])
        assert result.exit_code == 0, result.output
        format_cmd, lint_cmd = patched_runner.commands
        assert format_cmd[-3:] == ["black", "--check", "."]
        assert "--extend-exclude=venv,.venv" in lint_cmd

    def test_lint_failure(self, cli, patched_runner):
        patched_runner.on_args("flake8", returncode=1, stdout="main.py:1:1: F401 unused import")
        result = cli.invoke(main, ["lint", "--fix"])
        assert result.exit_code == 1
        assert "F401" in result.output
        assert "--check" not in patched_runner.commands[0]

    def test_test_exit_code(self, cli, patched_runner):
        patched_runner.on_args("unittest", returncode=1, stderr="FAILED (failures=1)")
        result = cli.invoke(main, ["test"])
        assert result.exit_code == 1
        assert "FAILED" in result.output


@pytest.mark.integration
@pytest.mark.slow
class TestGeneratedProject:
    def test_generated_tests_pass(self, cli, scaffolded: Path):
        result = cli.invoke(main, ["test", str(scaffolded)])
        assert result.exit_code == 0, result.output
