from pathlib import Path

import pytest

from krevetka.tools.write import WriteFileTool


@pytest.mark.asyncio
async def test_write_creates_parent_directories(tmp_path: Path):
    target = tmp_path / "nested" / "deeper" / "out.txt"

    result = await WriteFileTool().execute(path=str(target), content="hello")

    assert result.success is True
    assert result.content == f"Successfully wrote 5 characters to {target}"
    assert target.read_text(encoding="utf-8") == "hello"


@pytest.mark.asyncio
async def test_write_overwrites_existing_file(tmp_path: Path):
    target = tmp_path / "out.txt"
    target.write_text("old content", encoding="utf-8")

    await WriteFileTool().execute(path="out.txt", content="new", _runtime_base_path=tmp_path)

    assert target.read_text(encoding="utf-8") == "new"


@pytest.mark.asyncio
async def test_write_into_a_file_path_fails(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    result = await WriteFileTool().execute(path=str(blocker / "child.txt"), content="x")

    assert result.success is False
    assert result.to_text().startswith("Error writing file:")
