"""Main entry point for Krevetka."""

import asyncio
import sys
from typing import Any

import typer

from krevetka.agent import Agent
from krevetka.cli import SessionCommand, TerminalUI
from krevetka.config import Config, set_config
from krevetka.exceptions import ConfigurationError
from krevetka.history import HistoryStore
from krevetka.llm import create_provider
from krevetka.logging import configure_logging, log
from krevetka.prompts import build_system_prompt


def _build_overrides(
    model: str,
    base_url: str,
    api_key: str,
    max_tokens: int | None,
    yolo: bool,
) -> dict[str, Any]:
    """Translate command-line options into a nested config override mapping."""
    model_overrides: dict[str, Any] = {}
    if model:
        model_overrides["model"] = model
    if base_url:
        model_overrides["base_url"] = base_url
    if api_key:
        model_overrides["api_key"] = api_key
    if max_tokens is not None:
        model_overrides["max_tokens"] = max_tokens

    overrides: dict[str, Any] = {}
    if model_overrides:
        overrides["model"] = model_overrides
    if yolo:
        overrides["tools"] = {"skip_shell_approval": True}
    return overrides


def create_agent(cfg: Config, ui: TerminalUI) -> Agent:
    """Build an agent wired to the terminal UI."""
    if not cfg.model.api_key and not cfg.is_local_backend():
        raise ConfigurationError(
            "No API key configured. Set KREVETKA_MODEL__API_KEY, OPENROUTER_API_KEY "
            "or OPENAI_API_KEY, or pass --api-key."
        )

    provider = create_provider(
        model=cfg.model.model,
        base_url=cfg.model.base_url,
        api_key=cfg.model.api_key or None,
        max_tokens=cfg.model.max_tokens,
    )
    return Agent(
        provider=provider,
        history=HistoryStore(build_system_prompt(cfg)),
        skip_shell_approval=cfg.tools.skip_shell_approval,
        chunk_callback=ui.handle_stream_chunk,
        tool_output_callback=ui.print_tool_result,
        error_callback=ui.print_error,
    )


async def run_interactive(agent: Agent, ui: TerminalUI, cfg: Config) -> None:
    """Run the interactive agent loop."""
    ui.print_welcome(agent.model, agent.base_url)
    if cfg.tools.skip_shell_approval:
        ui.print_info("Shell commands will run without confirmation.")

    try:
        while True:
            try:
                user_input = await asyncio.to_thread(ui.prompt)
            except EOFError:
                ui.print_info("Goodbye!")
                break

            if not user_input:
                continue

            result = ui.handle_special_command(user_input)
            if result is None:
                continue
            if result is SessionCommand.EXIT:
                ui.print_info("Goodbye!")
                break
            if result is SessionCommand.CLEAR:
                agent.clear_context()
                ui.print_info("Conversation history cleared.")
                continue
            if result is SessionCommand.CONFIG:
                ui.print_config(cfg.display())
                continue

            try:
                outcome = await agent.run(result)
                log.debug("Turn finished", status=outcome.status, rounds=outcome.rounds)
            except Exception as e:
                log.error("Turn failed", error=str(e))
                ui.print_error(str(e))
    finally:
        await agent.close()


def main(
    model: str = "",
    base_url: str = "",
    api_key: str = "",
    max_tokens: int | None = None,
    yolo: bool = False,
    show_config: bool = False,
    verbose: bool = False,
) -> None:
    """Start a Krevetka interactive session."""
    overrides = _build_overrides(model, base_url, api_key, max_tokens, yolo)
    cfg = Config.load(overrides)
    set_config(cfg)

    # Configure logging once the config is in place
    configure_logging("DEBUG" if verbose else None)

    ui = TerminalUI()

    if show_config:
        ui.print_config(cfg.display())
        return

    try:
        agent = create_agent(cfg, ui)
    except ConfigurationError as e:
        ui.print_error(str(e))
        sys.exit(1)

    try:
        asyncio.run(run_interactive(agent, ui, cfg))
    except KeyboardInterrupt:
        log.info("Shutting down...")
        sys.exit(0)
    except Exception as e:
        log.error("Fatal error", error=str(e))
        sys.exit(1)


def app() -> None:
    """Console-script entry point."""
    cli = typer.Typer(help="Krevetka - an AI coding assistant in your terminal")

    @cli.command()
    def run(
        model: str = typer.Option("", "-m", "--model", help="Override model"),
        base_url: str = typer.Option("", "-u", "--base-url", help="Override API base URL"),
        api_key: str = typer.Option("", "-k", "--api-key", help="Override API key"),
        max_tokens: int | None = typer.Option(None, "--max-tokens", help="Override max completion tokens"),
        yolo: bool = typer.Option(False, "--yolo", help="Run shell commands without confirmation"),
        show_config: bool = typer.Option(False, "--config", help="Show configuration and exit"),
        verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
    ) -> None:
        main(model, base_url, api_key, max_tokens, yolo, show_config, verbose)

    cli()


if __name__ == "__main__":
    app()
