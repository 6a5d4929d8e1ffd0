from __future__ import annotations

import json
from pathlib import Path

from ergscan.__main__ import app


def _capture(write_temp_json, as_payload, detections, name: str = "capture.json") -> Path:
    return write_temp_json(name, as_payload(detections))


def test_global_json_plain_conflict(runner) -> None:
    result = runner.invoke(app, ["--json", "--plain", "parse", "capture.json"])
    assert result.exit_code == 2
    assert "--json" in result.stdout
    assert "--plain" in result.stdout


def test_parse_command_json_output(runner, write_temp_json, as_payload, interval_3x4) -> None:
    path = _capture(write_temp_json, as_payload, interval_3x4)
    result = runner.invoke(app, ["--json", "parse", str(path)])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["workoutType"] == "3x4:00/3:00r"
    assert payload["reps"] == 3
    assert len(payload["rows"]) == 3
    assert "trace" not in payload


def test_parse_command_json_with_trace_and_output_file(
    runner, write_temp_json, as_payload, single_2000m, tmp_path: Path
) -> None:
    path = _capture(write_temp_json, as_payload, single_2000m)
    out = tmp_path / "out" / "table.json"
    result = runner.invoke(app, ["--plain", "parse", str(path), "--format", "json", "--trace", "--output-file", str(out)])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert "=== layout ===" in payload["trace"]
    assert json.loads(out.read_text())["workoutType"] == "2000m"


def test_parse_command_plain_output(runner, write_temp_json, as_payload, single_2000m) -> None:
    path = _capture(write_temp_json, as_payload, single_2000m)
    result = runner.invoke(app, ["--plain", "parse", str(path)])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "workout_type\t2000m"
    assert "date\t2024-10-20" in lines
    assert "avg\t8:24.5\t2000\t2:06.1\t28\t-" in lines
    assert lines[-1].startswith("completeness\t")


def test_parse_command_pretty_output(runner, write_temp_json, as_payload, single_2000m) -> None:
    path = _capture(write_temp_json, as_payload, single_2000m)
    result = runner.invoke(app, ["parse", str(path)])
    assert result.exit_code == 0
    assert "2000m (Single)" in result.stdout
    assert "Date: 2024-10-20" in result.stdout
    assert "complete" in result.stdout


def test_parse_command_markdown_output(runner, write_temp_json, as_payload, interval_3x4, tmp_path: Path) -> None:
    path = _capture(write_temp_json, as_payload, interval_3x4, name="tuesday.json")
    out = tmp_path / "tuesday.md"
    result = runner.invoke(app, ["parse", str(path), "--format", "markdown", "--output-file", str(out)])
    assert result.exit_code == 0
    assert "## Results" in result.stdout
    assert out.read_text().startswith("---\n")
    assert 'title: "tuesday"' in out.read_text()


def test_parse_command_rejects_unknown_format(runner, write_temp_json, as_payload, single_2000m) -> None:
    path = _capture(write_temp_json, as_payload, single_2000m)
    result = runner.invoke(app, ["parse", str(path), "--format", "csv"])
    assert result.exit_code == 2


def test_parse_command_bad_input_exits_2(runner, write_temp_json) -> None:
    path = write_temp_json("bad.json", {"rows": []})
    result = runner.invoke(app, ["parse", str(path)])
    assert result.exit_code == 2
    assert "Input error" in result.stdout


def test_parse_command_unparseable_capture_still_succeeds(runner, write_temp_json) -> None:
    path = write_temp_json("empty.json", [])
    result = runner.invoke(app, ["--json", "parse", str(path)])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["workoutType"] is None
    assert payload["isComplete"] is False


def test_config_output_format_and_settings(runner, write_temp_json, write_temp_toml, as_payload, screen) -> None:
    detections = screen(
        "2000m",
        "Oct 20 2024",
        "8:24.5",
        ["8:24.5", "2000", "2:06.1", "65"],
        rows=[["2:06.0", "500", "2:06.0", "65"]],
    )
    path = _capture(write_temp_json, as_payload, detections)
    config = write_temp_toml(
        "config.toml",
        """
[parser]
stroke_rate_range = [10, 80]

[output]
format = "json"
""",
    )
    result = runner.invoke(app, ["--plain", "--config", str(config), "parse", str(path)])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["averages"]["strokeRate"]["text"] == "65"


def test_bad_config_exits_2(runner, write_temp_toml, tmp_path: Path) -> None:
    config = write_temp_toml("config.toml", "[parser]\nrow_threshold = 0.02")
    result = runner.invoke(app, ["--config", str(config), "normalize", "2O00"])
    assert result.exit_code == 2
    assert "Config error" in result.stdout


def test_normalize_command(runner) -> None:
    result = runner.invoke(app, ["normalize", "2:O6.l"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "2:06.1"


def test_normalize_command_descriptor_json(runner) -> None:
    result = runner.invoke(app, ["--json", "normalize", "--descriptor", "Bx4:00,3:00r"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["output"] == "3x4:00/3:00r"
    assert [step["step"] for step in payload["steps"]] == ["leading_b", "comma_to_slash"]
    assert payload["isWorkoutType"] is True


def _benchmark_case(write_temp_json, as_payload, detections, expected, name: str) -> Path:
    return write_temp_json(name, {"detections": as_payload(detections), "expected": expected})


def test_benchmark_command_plain(runner, write_temp_json, as_payload, interval_3x4, single_2000m, tmp_path: Path) -> None:
    _benchmark_case(
        write_temp_json,
        as_payload,
        interval_3x4,
        {"workoutType": "3x4:00/3:00r", "totalDistance": 3150},
        "interval.json",
    )
    _benchmark_case(
        write_temp_json,
        as_payload,
        single_2000m,
        {"workoutType": "2000m", "totalTime": "8:24.0"},
        "single.json",
    )
    report = tmp_path / "reports" / "benchmark.md"
    result = runner.invoke(
        app,
        ["--plain", "benchmark", str(tmp_path), "--output-file", str(report), "--tables-dir", str(tmp_path / "tables")],
    )
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "case\tmatched\ttotal\taccuracy"
    assert "interval\t2\t2\t1.0000" in lines
    assert "single\t1\t2\t0.5000" in lines
    assert lines[-1] == "overall\t3\t4\t0.7500"
    assert "**Overall:** 3/4 (75%)" in report.read_text()
    assert (tmp_path / "tables" / "2024-10-20-single.md").exists()


def test_benchmark_command_min_accuracy(runner, write_temp_json, as_payload, single_2000m) -> None:
    path = _benchmark_case(write_temp_json, as_payload, single_2000m, {"workoutType": "5000m"}, "case.json")
    result = runner.invoke(app, ["--json", "benchmark", str(path), "--min-accuracy", "0.9"])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["summary"] == {"matched": 0, "total": 1, "accuracy": 0.0}
    assert payload["cases"][0]["mismatches"][0]["field"] == "workoutType"


def test_benchmark_command_bad_case_exits_2(runner, write_temp_json) -> None:
    path = write_temp_json("case.json", {"detections": []})
    result = runner.invoke(app, ["benchmark", str(path)])
    assert result.exit_code == 2
    assert "Input error" in result.stdout
