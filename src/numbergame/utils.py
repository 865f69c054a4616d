"""Utility functions for the number game experiments."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


def setup_environment() -> None:
    """Load environment variables from .env file.

    Config values may reference them with ${VAR} syntax.
    """
    load_dotenv()


def parse_examples(text: str) -> list[int]:
    """Parse a comma- or space-separated list of integers.

    Args:
        text: e.g. "16, 8, 2, 64" or "16 8 2 64".

    Returns:
        The integers in order, duplicates kept.

    Raises:
        ValueError: If a token is not an integer.
    """
    tokens = text.replace(",", " ").split()
    try:
        return [int(tok) for tok in tokens]
    except ValueError as e:
        raise ValueError(f"Examples must be integers, got {text!r}") from e


def save_jsonl(items: list[dict[str, Any]], path: str | Path) -> None:
    """Save data to a JSONL file.

    Args:
        items: List of dictionaries to save.
        path: Path to the output JSONL file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for item in items:
            f.write(json.dumps(item) + "\n")


def get_timestamp() -> str:
    """Get a timestamp string for file naming.

    Returns:
        Timestamp in format YYYYMMDD_HHMMSS.
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def ensure_dir(path: str | Path) -> Path:
    """Ensure a directory exists.

    Args:
        path: Directory path.

    Returns:
        Path object for the directory.
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
