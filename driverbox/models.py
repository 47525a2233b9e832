"""Data shapes exchanged with scripts and senders."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PointValue:
    point_name: str = ""
    type: str = ""
    value: Any = None


def _point_value_dict(pv: PointValue) -> dict[str, Any]:
    return {"pointName": pv.point_name, "type": pv.type, "value": pv.value}


@dataclass
class SendPointValues:
    device_name: str = ""
    mode: str = ""
    values: list[PointValue] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {
                "deviceName": self.device_name,
                "mode": self.mode,
                "values": [_point_value_dict(v) for v in self.values],
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )


@dataclass
class ScriptResult:
    device_name: str = ""
    point_values: list[PointValue] = field(default_factory=list)


@dataclass
class SendRequest:
    type: str = ""
    device_name: str = ""
    point_values: list[PointValue] = field(default_factory=list)