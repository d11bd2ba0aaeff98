"""Simulation report files written by `whirlbird simulate`."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

SCHEMA_VERSION = 1


@dataclass(frozen=True)
class SimulationReport:
    summary: dict[str, Any]
    # One entry per run, replay frames stripped
    results: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_runs(cls, summary: dict[str, Any], runs: list[dict[str, Any]]) -> "SimulationReport":
        return cls(
            summary=dict(summary),
            results=[{k: v for k, v in run.items() if k != "frames"} for run in runs],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"schema_version": SCHEMA_VERSION, "summary": self.summary, "results": self.results}


def save_report(path: Path, report: SimulationReport) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(report.to_dict(), f, indent=2)
    return path


def load_report(path: Path) -> SimulationReport:
    with open(path, "r") as f:
        data = json.load(f)
    version = data.get("schema_version") if isinstance(data, dict) else None
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported report schema_version {version!r} in {path}")
    return SimulationReport(summary=data["summary"], results=data.get("results", []))
