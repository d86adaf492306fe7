from __future__ import annotations

import platform
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Tuple


class ReportKind(str, Enum):
    EVENT = "event"
    PAGE_VIEW = "page_view"


class VariableScope(IntEnum):
    VISITOR = 1
    SESSION = 2
    PAGE = 3


@dataclass(frozen=True, slots=True)
class Configuration:
    """Settings applied to the tracker on the first ``configure()`` call."""

    tracking_key: str
    network_timeout: int
    scope: VariableScope = VariableScope.VISITOR


@dataclass(frozen=True, slots=True)
class DeviceInfo:
    platform_version: str
    model: str

    @classmethod
    def detect(cls) -> "DeviceInfo":
        version = " ".join(part for part in (platform.system(), platform.release()) if part)
        return cls(
            platform_version=version or "unknown",
            model=platform.machine() or "unknown",
        )


@dataclass(frozen=True, slots=True)
class ReportTask:
    kind: ReportKind
    payload: Tuple[Any, ...]

    @classmethod
    def event(cls, category: str, action: str, label: str, value: int) -> "ReportTask":
        return cls(kind=ReportKind.EVENT, payload=(category, action, label, value))

    @classmethod
    def page_view(cls, path: str) -> "ReportTask":
        return cls(kind=ReportKind.PAGE_VIEW, payload=(path,))

    def describe(self) -> str:
        return " / ".join(str(item) for item in self.payload)


@dataclass(slots=True)
class ReportResult:
    task: ReportTask
    ok: bool
    error: Optional[BaseException] = None
    meta: Dict[str, Any] = field(default_factory=dict)
