"""Input and output helpers shared by the `inbox-features` commands.

Users come in as one JSON object, messages as JSON Lines; both are parsed
here so every command reports bad input the same way (exit code 1).
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import click

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_RUNTIME_ERROR = 2


class InboxCliError(click.ClickException):
    """Failure shown to the user; ``exit_code`` is 1 for bad input, 2 for encoding errors."""

    def __init__(self, message: str, *, exit_code: int = EXIT_INPUT_ERROR) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


def _parse_object(text: str, *, where: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InboxCliError(f"Malformed JSON {where}: {exc}") from exc
    if not isinstance(payload, dict):
        raise InboxCliError(f"Expected a JSON object {where}")
    return payload


def load_json_file(path: Path, *, label: str) -> dict[str, Any]:
    """Read the single JSON object in ``path``; ``label`` names it in errors."""
    if not path.is_file():
        raise InboxCliError(f"{label} not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InboxCliError(f"Cannot read {label}: {exc}") from exc
    return _parse_object(text, where=f"in {label}")


def stream_jsonl(path: Path, *, label: str) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield ``(line_number, object)`` for each non-blank line of a JSONL file."""
    if not path.is_file():
        raise InboxCliError(f"{label} not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                if line.strip():
                    yield line_num, _parse_object(line, where=f"at line {line_num} of {label}")
    except OSError as exc:
        raise InboxCliError(f"Cannot read {label}: {exc}") from exc


def dump_json_output(payload: dict[str, Any] | list[Any], out_path: Path | None) -> None:
    """Print ``payload`` as sorted, indented JSON, or write it to ``out_path``."""
    text = json.dumps(payload, sort_keys=True, indent=2)
    if out_path is None:
        click.echo(text)
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")


def resolve_optional_output_path(output_arg: str | None) -> Path | None:
    """``None``, ``""`` and ``"-"`` mean stdout."""
    if output_arg is None or output_arg.strip() in {"", "-"}:
        return None
    return Path(output_arg.strip())
