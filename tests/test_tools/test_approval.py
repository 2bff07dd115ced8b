import asyncio
import io
import os

import pytest

from krevetka.approval import ApprovalGate


@pytest.mark.asyncio
async def test_bypass_approves_without_prompting():
    out = io.StringIO()
    gate = ApprovalGate(bypass=True, stdin=io.StringIO(), stdout=out)

    assert await gate.request("ls") is True
    assert out.getvalue() == ""


@pytest.mark.asyncio
async def test_non_terminal_input_is_rejected():
    out = io.StringIO()
    gate = ApprovalGate(stdin=io.StringIO("y"), stdout=out)

    assert await gate.request("make deploy") is False
    assert "Shell command: make deploy" in out.getvalue()
    assert out.getvalue().endswith("N (no terminal attached)\n")


@pytest.mark.skipif(os.name != "posix", reason="requires a pseudo-terminal")
@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("key", "approved"),
    [(b"y", True), (b"Y", True), (b"n", False), (b"\r", False), (b"\x03", False)],
)
async def test_single_keypress_decides(key: bytes, approved: bool):
    master, slave = os.openpty()
    stdin = os.fdopen(slave, "r")
    out = io.StringIO()
    try:
        gate = ApprovalGate(stdin=stdin, stdout=out)
        pending = asyncio.create_task(gate.request("echo hi"))
        # Let the gate switch the terminal to raw mode before typing.
        await asyncio.sleep(0.05)
        os.write(master, key)

        assert await asyncio.wait_for(pending, timeout=5) is approved
        assert out.getvalue().endswith("y\n" if approved else "N\n")
    finally:
        stdin.close()
        os.close(master)
