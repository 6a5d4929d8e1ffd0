"""Shared command helpers."""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer

from ergscan.core.state import CLIState
from ergscan.core.trace import ParseTrace
from ergscan.utils.parsing import InputError


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def fail_input(exc: InputError) -> NoReturn:
    """Report an unusable input file and exit with status 2."""
    typer.echo(f"Input error: {exc}")
    raise typer.Exit(code=2)


def print_trace(state: CLIState, trace: ParseTrace) -> None:
    state.console.rule("trace")
    for line in trace.lines:
        state.console.print(line, markup=False, highlight=False)
