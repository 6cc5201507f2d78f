from __future__ import annotations

import json
import logging
import random
from typing import Any, Dict

from ..core.ports import DecisionLogSink


class DecisionLogger(DecisionLogSink):
    """Write decision payloads to a stdlib logger.

    Sampling:
      - ``sample_rate`` in [0, 1] is the probability a payload is logged.
      - ``smart_sampling=True`` always logs denials regardless of the rate.
    """

    def __init__(
        self,
        *,
        logger_name: str = "aclx.audit",
        level: int = logging.INFO,
        as_json: bool = False,
        sample_rate: float = 1.0,
        smart_sampling: bool = False,
    ) -> None:
        self.logger = logging.getLogger(logger_name)
        self.level = level
        self.as_json = as_json
        self.sample_rate = max(0.0, min(1.0, float(sample_rate)))
        self.smart_sampling = smart_sampling

    def log(self, payload: Dict[str, Any]) -> None:
        if not self._should_log(payload):
            return
        self.logger.log(self.level, self._render(payload))

    def _should_log(self, payload: Dict[str, Any]) -> bool:
        if self.smart_sampling and not payload.get("allowed", False):
            return True
        if self.sample_rate >= 1.0:
            return True
        if self.sample_rate <= 0.0:
            return False
        return random.random() < self.sample_rate

    def _render(self, payload: Dict[str, Any]) -> str:
        if self.as_json:
            return json.dumps(payload, default=str, sort_keys=True)
        parts = [f"decision={payload.get('decision')}"]
        for key in ("role", "resource", "privilege", "trace_id"):
            value = payload.get(key)
            if value is not None:
                parts.append(f"{key}={value}")
        return "aclx " + " ".join(parts)


__all__ = ["DecisionLogger"]
