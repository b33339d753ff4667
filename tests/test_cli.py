# tests/test_cli.py
"""Tests for the CLI."""

import pytest

pytest.importorskip("typer", reason="Tests require typer package (pip install vaultrag[cli])")

from typer.testing import CliRunner

from vaultrag.cli import app

VAULTRAG_ENV_VARS = [
    "VAULTRAG_EMBEDDING_MODEL",
    "VAULTRAG_EMBEDDING_DIMENSION",
    "VAULTRAG_VAULT_DIR",
    "VAULTRAG_DATA_DIR",
    "VAULTRAG_INDEX_BACKEND",
    "VAULTRAG_MIN_SIMILARITY",
    "VAULTRAG_LIMIT",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """A vault plus a config using the deterministic fake embedding client."""
    for name in VAULTRAG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    vault = tmp_path / "vault"
    (vault / "notes").mkdir(parents=True)
    (vault / "notes" / "a.md").write_text("# A\nalpha", encoding="utf-8")
    (vault / "b.md").write_text("beta", encoding="utf-8")
    (tmp_path / "vaultrag.yaml").write_text(
        "provider: custom\n"
        "embedding_client: conftest.FakeEmbeddingClient\n"
        "vault_dir: vault\n"
        "data_dir: data\n",
        encoding="utf-8",
    )
    return tmp_path


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "vaultrag" in result.output

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    @pytest.mark.parametrize("command", ["index", "search", "stats", "clear"])
    def test_command_help(self, runner, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestIndexCommand:
    def test_index_then_up_to_date(self, runner, workspace):
        result = runner.invoke(app, ["index", "--plain"])
        assert result.exit_code == 0, result.output
        assert "Indexed 2 files (2 chunks)" in result.output

        result = runner.invoke(app, ["index", "--plain"])
        assert result.exit_code == 0
        assert "Index is up to date." in result.output

    def test_reindex_all(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])

        result = runner.invoke(app, ["index", "--plain", "--reindex-all"])

        assert result.exit_code == 0
        assert "Indexed 2 files" in result.output

    def test_deleted_files_are_reported(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])
        (workspace / "vault" / "b.md").unlink()

        result = runner.invoke(app, ["index", "--plain"])

        assert result.exit_code == 0
        assert "Removed 1 deleted files" in result.output

    def test_missing_vault_directory(self, runner, workspace):
        result = runner.invoke(app, ["index", str(workspace / "nope"), "--plain"])
        assert result.exit_code == 1
        assert "Vault directory not found" in result.output

    def test_missing_embedding_model(self, runner, tmp_path, monkeypatch):
        for name in VAULTRAG_ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["index", "--plain"])

        assert result.exit_code == 1
        assert "embedding_model" in result.output

    def test_unknown_config_keys_warn(self, runner, workspace):
        config = workspace / "vaultrag.yaml"
        config.write_text(config.read_text(encoding="utf-8") + "llm_model: x\n", encoding="utf-8")

        result = runner.invoke(app, ["index", "--plain"])

        assert result.exit_code == 0
        assert "Warning: Unknown config keys" in result.output


class TestSearchCommand:
    def test_search_lists_locations(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])

        result = runner.invoke(app, ["search", "alpha", "--plain", "-m", "-1"])

        assert result.exit_code == 0, result.output
        assert "notes/a.md:1-2" in result.output
        assert "b.md:1-1" in result.output

    def test_search_folder_scope(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])

        result = runner.invoke(app, ["search", "alpha", "--plain", "-m", "-1", "--folder", "notes"])

        assert result.exit_code == 0
        assert "notes/a.md:1-2" in result.output
        assert "b.md:1-1" not in result.output

    def test_search_empty_index(self, runner, workspace):
        result = runner.invoke(app, ["search", "alpha", "--plain"])
        assert result.exit_code == 0
        assert "No results found." in result.output


class TestStatsCommand:
    def test_stats_no_database(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["stats", "--data-dir", str(tmp_path / "data"), "--plain"])

        assert result.exit_code == 0
        assert "No embeddings found." in result.output
        assert not (tmp_path / "data").exists()

    def test_stats_after_index(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])

        result = runner.invoke(app, ["stats", "--plain"])

        assert result.exit_code == 0
        assert "fake/embed-small (8d): 2 chunks, 2 files" in result.output

    def test_stats_reads_data_dir_from_environment(self, runner, workspace, monkeypatch):
        runner.invoke(app, ["index", "--plain"])
        (workspace / "vaultrag.yaml").unlink()
        monkeypatch.setenv("VAULTRAG_DATA_DIR", str(workspace / "data"))

        result = runner.invoke(app, ["stats", "--plain"])

        assert result.exit_code == 0
        assert "fake/embed-small (8d): 2 chunks" in result.output


class TestClearCommand:
    def test_clear_cancelled(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])

        result = runner.invoke(app, ["clear", "--plain"], input="n\n")

        assert "Cancelled." in result.output
        assert "2 chunks" in runner.invoke(app, ["stats", "--plain"]).output

    def test_clear_force(self, runner, workspace):
        runner.invoke(app, ["index", "--plain"])

        result = runner.invoke(app, ["clear", "--force", "--plain"])

        assert result.exit_code == 0
        assert "Cleared embeddings for fake/embed-small" in result.output
        assert "No embeddings found." in runner.invoke(app, ["stats", "--plain"]).output
