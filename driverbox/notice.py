"""Notification payloads for device status changes."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

NOTICE_LABELS = ("Default",)
NOTICE_CATEGORY = "normal"


class EventType(str, Enum):
    COMMAND_ACK = "CommandAck"
    SCHEDULE_TRIGGER = "ScheduleTrigger"
    DEVICE_EVENT = "DeviceEvent"


class DeviceEventType(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


@dataclass
class DeviceEventModel:
    device_sn: str
    type: DeviceEventType
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"deviceSN": self.device_sn, "type": self.type.value, "data": self.data}


@dataclass
class EventModel:
    event_type: EventType
    report_timestamp: int
    event_data: Any = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = self.event_data
        if hasattr(data, "to_dict"):
            data = data.to_dict()
        return {
            "eventType": self.event_type.value,
            "reportTimestamp": self.report_timestamp,
            "eventData": data,
            "description": self.description,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


def status_change_notice_data(device_name: str, online: bool, timestamp: int | None = None) -> str:
    """Return the JSON notice for a device going online or offline.

    ``timestamp`` is in milliseconds since the epoch; it defaults to now.
    """
    if timestamp is None:
        timestamp = time.time_ns() // 1_000_000
    status = DeviceEventType.ONLINE if online else DeviceEventType.OFFLINE
    event = EventModel(
        event_type=EventType.DEVICE_EVENT,
        report_timestamp=timestamp,
        event_data=DeviceEventModel(device_sn=device_name, type=status),
    )
    return event.to_json()