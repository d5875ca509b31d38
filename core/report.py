import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from core.models import RunSummary


def summary_to_dict(summary: RunSummary, meta: dict | None = None) -> dict:
    checks = []
    for check_id, result in summary.results.items():
        entry = asdict(result)
        entry["check_id"] = check_id.value
        entry["name"] = check_id.label
        checks.append(entry)

    return {
        "meta": {"generated_at": datetime.now(timezone.utc).isoformat(), **(meta or {})},
        "total_checks": summary.total_checks,
        "overall_passed": summary.overall_passed,
        "fixes_attempted": summary.fixes_attempted,
        "fixes_succeeded": summary.fixes_succeeded,
        "reboot_required": summary.reboot_required,
        "counts": summary.counts(),
        "checks": checks,
    }


def write_json_report(summary: RunSummary, out_path: str | Path, meta: dict | None = None) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", encoding="utf-8") as f:
        json.dump(summary_to_dict(summary, meta), f, indent=2, ensure_ascii=False, default=str)

    return out_path
