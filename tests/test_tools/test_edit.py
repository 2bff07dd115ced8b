from pathlib import Path

import pytest

from krevetka.tools.edit import EditFileTool


@pytest.mark.asyncio
async def test_single_occurrence_is_replaced(tmp_path: Path):
    target = tmp_path / "code.py"
    target.write_text("x = 1\ny = 2\n", encoding="utf-8")

    result = await EditFileTool().execute(path=str(target), old_string="y = 2", new_string="y = 3")

    assert result.content == f"Successfully edited {target}"
    assert target.read_text(encoding="utf-8") == "x = 1\ny = 3\n"


@pytest.mark.asyncio
async def test_ambiguous_match_leaves_file_unchanged(tmp_path: Path):
    target = tmp_path / "code.py"
    target.write_text("foo\nfoo\n", encoding="utf-8")

    result = await EditFileTool().execute(path=str(target), old_string="foo", new_string="bar")

    assert result.success is False
    assert result.to_text() == f"Error: The string appears 2 times in {target}. Make it more specific."
    assert target.read_text(encoding="utf-8") == "foo\nfoo\n"


@pytest.mark.asyncio
async def test_missing_match_leaves_file_unchanged(tmp_path: Path):
    target = tmp_path / "code.py"
    target.write_text("foo\n", encoding="utf-8")

    result = await EditFileTool().execute(path=str(target), old_string="baz", new_string="bar")

    assert result.to_text() == f"Error: The string was not found in {target}"
    assert target.read_text(encoding="utf-8") == "foo\n"


@pytest.mark.asyncio
async def test_empty_old_string_is_not_found(tmp_path: Path):
    target = tmp_path / "code.py"
    target.write_text("foo\n", encoding="utf-8")

    result = await EditFileTool().execute(path=str(target), old_string="", new_string="bar")

    assert result.success is False
    assert "was not found" in result.to_text()


@pytest.mark.asyncio
async def test_crlf_line_endings_are_preserved(tmp_path: Path):
    target = tmp_path / "win.txt"
    target.write_bytes(b"one\r\ntwo\r\n")

    await EditFileTool().execute(path=str(target), old_string="two", new_string="three")

    assert target.read_bytes() == b"one\r\nthree\r\n"
