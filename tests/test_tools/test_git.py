import shutil
import subprocess
from pathlib import Path

import pytest

from krevetka.tools.git import (
    GitAddTool,
    GitCommitTool,
    GitDiffTool,
    GitLogTool,
    GitStatusTool,
    run_git,
)

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True)
    subprocess.run(["git", "config", "user.email", "dev@example.com"], cwd=tmp_path, check=True)
    subprocess.run(["git", "config", "user.name", "Dev"], cwd=tmp_path, check=True)
    subprocess.run(["git", "config", "commit.gpgsign", "false"], cwd=tmp_path, check=True)
    return tmp_path


@pytest.mark.asyncio
async def test_add_commit_and_log(repo: Path):
    (repo / "readme.md").write_text("hello\n", encoding="utf-8")

    status = await GitStatusTool().execute(_runtime_base_path=repo)
    assert "?? readme.md" in status.content

    added = await GitAddTool().execute(paths=["readme.md"], _runtime_base_path=repo)
    assert added.success is True

    staged = await GitDiffTool().execute(staged=True, _runtime_base_path=repo)
    assert "+hello" in staged.content

    committed = await GitCommitTool().execute(message="docs: add readme", _runtime_base_path=repo)
    assert committed.success is True

    log = await GitLogTool().execute(n=5, _runtime_base_path=repo)
    assert log.content.endswith("docs: add readme")


@pytest.mark.asyncio
async def test_clean_diff_reports_no_changes(repo: Path):
    result = await GitDiffTool().execute(_runtime_base_path=repo)

    assert result.content == "(no changes)"


@pytest.mark.asyncio
async def test_non_zero_exit_is_reported_not_raised(repo: Path):
    result = await GitLogTool().execute(_runtime_base_path=repo)

    assert result.success is False
    assert result.to_text().startswith("Error: Git error (exit ")


@pytest.mark.asyncio
async def test_missing_working_directory_is_reported(tmp_path: Path):
    result = await run_git(["status"], tmp_path / "missing")

    assert result.success is False
    assert result.to_text().startswith("Error: Git error:")


@pytest.mark.asyncio
async def test_add_requires_paths(repo: Path):
    result = await GitAddTool().execute(paths=[], _runtime_base_path=repo)

    assert result.success is False
