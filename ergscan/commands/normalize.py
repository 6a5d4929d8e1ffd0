"""Show how a single OCR token is repaired."""

from __future__ import annotations

import typer

from ergscan.commands.common import get_state, print_json_payload
from ergscan.core.normalize import DESCRIPTOR_PIPELINE, normalize
from ergscan.core.patterns import match_workout_type


def normalize_command(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Raw OCR token"),
    descriptor: bool = typer.Option(False, "--descriptor", help="Run the workout descriptor pipeline"),
) -> None:
    """Print the repaired form of an OCR token."""
    state = get_state(ctx)

    steps = []
    if descriptor:
        result = text
        for name, transform in DESCRIPTOR_PIPELINE:
            repaired = transform(result)
            if repaired != result:
                steps.append({"step": name, "before": result, "after": repaired})
            result = repaired
    else:
        result = normalize(text)

    if state.json_output:
        payload = {"input": text, "output": result, "steps": steps}
        if descriptor:
            payload["isWorkoutType"] = match_workout_type(result)
        print_json_payload(state, payload)
        return

    typer.echo(result)
    if state.verbose:
        for step in steps:
            state.console.print(f"  {step['step']}: {step['before']} -> {step['after']}", markup=False)
