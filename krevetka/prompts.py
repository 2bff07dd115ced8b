"""System prompt construction."""

import platform
from pathlib import Path

from krevetka.config import Config

_BASE_PROMPT = """You are Krevetka, an AI coding assistant working in the user's terminal.

Working directory: {cwd}
Platform: {platform}

Guidelines:
- Use the available tools to inspect the project before changing it.
- Prefer edit_file for targeted changes; use write_file for new files.
- Shell commands require the user's approval; explain why you need one.
- Tool results starting with "Error" describe a failure; read them and adjust.
- Keep answers concise and reference files by path."""


def build_system_prompt(config: Config, cwd: Path | str | None = None) -> str:
    """Assemble the system preamble from the base text and configured extras."""
    prompt = _BASE_PROMPT.format(
        cwd=Path(cwd) if cwd is not None else Path.cwd(),
        platform=f"{platform.system()} {platform.release()}".strip(),
    )
    extra = config.system_prompt_extra.strip()
    if extra:
        prompt += f"\n\n{extra}"
    return prompt
