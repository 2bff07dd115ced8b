"""Krevetka - an AI coding assistant for OpenAI-compatible endpoints."""

__version__ = "0.1.0"

from krevetka.config import Config
from krevetka.main import main

__all__ = ["Config", "main", "__version__"]
