from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, dict[str, Any]] = {
    "compose": {
        "output": "output.wav",
        "sample_rate": 44100,
        "max_duration_seconds": 45.0,
        "reverb": True,
        "workers": 1,
    },
}


@dataclass(frozen=True)
class ComposeSettings:
    output: str
    sample_rate: int
    max_duration_seconds: float
    reverb: bool
    workers: int

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be > 0.")
        if self.max_duration_seconds <= 0:
            raise ValueError("max_duration_seconds must be > 0.")
        if self.workers <= 0:
            raise ValueError("workers must be > 0.")

    def to_config(self) -> dict[str, dict[str, Any]]:
        return {"compose": asdict(self)}


def get_default_config() -> dict[str, dict[str, Any]]:
    return deepcopy(DEFAULT_CONFIG)


def _deep_merge_dict(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    out = deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge_dict(out[key], value)
        else:
            out[key] = value
    return out


def load_config_file(path: str | Path) -> dict[str, dict[str, Any]]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Config root must be a JSON object.")
    return _deep_merge_dict(get_default_config(), payload)


def compose_settings(config: dict[str, Any], **overrides: Any) -> ComposeSettings:
    section = config.get("compose", {})
    if not isinstance(section, dict):
        raise ValueError("Config 'compose' section must be a JSON object.")
    merged = _deep_merge_dict(DEFAULT_CONFIG["compose"], section)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return ComposeSettings(
        output=str(merged["output"]),
        sample_rate=int(merged["sample_rate"]),
        max_duration_seconds=float(merged["max_duration_seconds"]),
        reverb=bool(merged["reverb"]),
        workers=int(merged["workers"]),
    )


def save_config_file(path: str | Path, config: dict[str, Any]) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(config, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return output
