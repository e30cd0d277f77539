from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np
import rerun as rr

LOG_PATH = "knn_layout/log"

_console = logging.getLogger("knn_layout")


@dataclass(frozen=True)
class LogVisual:
    path: str
    payload: object


class LogIntervalPolicy:
    def __init__(self, intervals: Mapping[str, int], *, default_interval: int = 1) -> None:
        self._intervals: dict[str, int] = {}
        for event, value in intervals.items():
            interval = int(value)
            if interval <= 0:
                raise ValueError("interval must be positive")
            self._intervals[str(event)] = interval
        self._default_interval = int(default_interval)
        if self._default_interval <= 0:
            raise ValueError("default_interval must be positive")
        self._counters: dict[str, int] = {}

    def should_log(self, event: str) -> bool:
        interval = self._intervals.get(event, self._default_interval)
        if interval <= 1:
            return True
        count = self._counters.get(event, 0)
        self._counters[event] = count + 1
        return count % interval == 0

    def reset(self) -> None:
        self._counters.clear()


class LayoutLogger:
    """Structured events for graph building and layout runs.

    Every event goes to the ``knn_layout`` console logger. Once
    :meth:`enable_rerun` has been called the same event is also recorded in
    rerun as a text line plus its data, with optional visuals attached.
    """

    def __init__(self, app_id: str = "knn-layout", base_path: str = LOG_PATH) -> None:
        self._app_id = app_id
        self._base_path = base_path
        self._rerun_enabled = False
        self._spawned = False
        self._interval_policy: LogIntervalPolicy | None = None

    @property
    def rerun_enabled(self) -> bool:
        return self._rerun_enabled

    def enable_rerun(self, *, app_id: str | None = None, spawn: bool = True) -> None:
        if app_id is not None:
            self._app_id = app_id
        if not rr.is_enabled():
            rr.init(self._app_id)
        if spawn and not self._spawned:
            rr.spawn()
            self._spawned = True
        self._rerun_enabled = True

    def disable_rerun(self) -> None:
        self._rerun_enabled = False

    def _console_log(self, message: str) -> None:
        _console.info(message)

    @staticmethod
    def _format_value(value: Any, *, max_items: int = 8, max_chars: int = 200) -> str:
        if value is None:
            return "None"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, np.integer)):
            return str(value)
        if isinstance(value, (float, np.floating)):
            return f"{float(value):.6g}"
        if isinstance(value, str):
            return value if len(value) <= max_chars else f"{value[:max_chars]}..."
        if isinstance(value, np.ndarray):
            return f"ndarray(shape={value.shape}, dtype={value.dtype})"
        if isinstance(value, dict):
            items = list(value.items())
            parts = [f"{k}={LayoutLogger._format_value(v)}" for k, v in items[:max_items]]
            if len(items) > max_items:
                parts.append("...")
            return "{" + ", ".join(parts) + "}"
        if isinstance(value, (list, tuple)):
            seq = list(value)
            parts = [LayoutLogger._format_value(v) for v in seq[:max_items]]
            if len(seq) > max_items:
                parts.append("...")
            if isinstance(value, list):
                return "[" + ", ".join(parts) + "]"
            return "(" + ", ".join(parts) + ")"
        text = repr(value)
        return text if len(text) <= max_chars else f"{text[:max_chars]}..."

    @staticmethod
    def _coerce_rr_value(value: Any) -> Any:
        if value is None:
            return "None"
        if isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, (np.integer, np.floating)):
            return value.item()
        if isinstance(value, (list, tuple)):
            if all(isinstance(item, (bool, int, float, str)) for item in value):
                return list(value)
            return LayoutLogger._format_value(value)
        return LayoutLogger._format_value(value)

    def _coerce_anyvalues(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        return {key: self._coerce_rr_value(value) for key, value in data.items()}

    def configure_intervals(self, intervals: Mapping[str, int], *, default_interval: int = 1) -> None:
        self._interval_policy = LogIntervalPolicy(intervals, default_interval=default_interval)

    def reset_intervals(self) -> None:
        if self._interval_policy is not None:
            self._interval_policy.reset()

    def should_log(self, event: str) -> bool:
        if self._interval_policy is None:
            return True
        return self._interval_policy.should_log(event)

    def event(
        self,
        event: str,
        *,
        section: str,
        data: Mapping[str, Any] | None = None,
        path: str | None = None,
        visuals: Sequence[LogVisual] | None = None,
        force: bool = False,
    ) -> None:
        if not section:
            raise ValueError("section must be provided")
        if not force and not self.should_log(event):
            return
        if not self._rerun_enabled and not _console.isEnabledFor(logging.INFO):
            return
        if data:
            details = " ".join(f"{k}={self._format_value(v)}" for k, v in data.items())
            message = f"{event} {details}"
        else:
            message = event
        message = f"{message} [{section}]"
        self._console_log(message)
        if not self._rerun_enabled:
            return
        base_path = path or self._base_path
        rr.log(base_path, rr.TextLog(message))
        if data:
            rr.log(f"{base_path}/{event}", rr.AnyValues(**self._coerce_anyvalues(data)))
        if visuals:
            for visual in visuals:
                rr.log(visual.path, visual.payload)

    def visual_points2d(
        self,
        path: str,
        positions: Sequence[Sequence[float]] | np.ndarray,
        *,
        colors: Sequence[Sequence[int]] | None = None,
        radii: float | Sequence[float] | None = None,
        labels: Sequence[str] | None = None,
    ) -> LogVisual:
        return LogVisual(
            path=path,
            payload=rr.Points2D(positions, colors=colors, radii=radii, labels=labels),
        )

    def visual_line_strips2d(
        self,
        path: str,
        strips: Sequence[Sequence[Sequence[float]]],
        *,
        radii: float | Sequence[float] | None = None,
    ) -> LogVisual:
        return LogVisual(path=path, payload=rr.LineStrips2D(strips, radii=radii))


LOGGER = LayoutLogger()


def init_rerun(app_id: str = "knn-layout", *, spawn: bool = True) -> None:
    LOGGER.enable_rerun(app_id=app_id, spawn=spawn)
