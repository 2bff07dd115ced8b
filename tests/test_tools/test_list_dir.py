from pathlib import Path

import pytest

from krevetka.tools.list_dir import MAX_ENTRIES, TRUNCATED_MARKER, ListDirectoryTool, list_directory


def test_flat_listing_is_sorted_with_directory_suffix(tmp_path: Path):
    (tmp_path / "b.txt").write_text("", encoding="utf-8")
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "inner.txt").write_text("", encoding="utf-8")

    assert list_directory(tmp_path) == "a/\nb.txt"


def test_recursive_listing_indents_and_skips_caches(tmp_path: Path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("", encoding="utf-8")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "pkg.js").write_text("", encoding="utf-8")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("", encoding="utf-8")

    output = list_directory(tmp_path, recursive=True)

    assert output.splitlines() == [".git/", "node_modules/", "src/", "  main.py"]


def test_recursion_depth_is_capped(tmp_path: Path):
    current = tmp_path
    for level in range(8):
        current = current / f"d{level}"
        current.mkdir()

    lines = list_directory(tmp_path, recursive=True).splitlines()

    assert lines[-1] == "        d4/"
    assert len(lines) == 5


def test_listing_is_truncated_after_max_entries(tmp_path: Path):
    for i in range(MAX_ENTRIES + 25):
        (tmp_path / f"f{i:04d}.txt").write_text("", encoding="utf-8")

    lines = list_directory(tmp_path).splitlines()

    assert len(lines) == MAX_ENTRIES + 1
    assert lines[-1] == TRUNCATED_MARKER


def test_empty_directory(tmp_path: Path):
    assert list_directory(tmp_path) == "(empty directory)"


@pytest.mark.asyncio
async def test_tool_defaults_to_runtime_base(tmp_path: Path):
    (tmp_path / "only.txt").write_text("", encoding="utf-8")

    result = await ListDirectoryTool().execute(_runtime_base_path=tmp_path)

    assert result.content == "only.txt"


@pytest.mark.asyncio
async def test_missing_directory_reports_error(tmp_path: Path):
    result = await ListDirectoryTool().execute(path=str(tmp_path / "missing"))

    assert result.success is False
    assert result.to_text().startswith("Error listing directory:")
