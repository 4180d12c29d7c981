"""Pydantic models for submitted metrics."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, Field, confloat, constr

NonEmptyStr = constr(min_length=1)
Number = Union[int, confloat(allow_inf_nan=False)]


class Gauge(BaseModel):
    name: NonEmptyStr
    value: Number


class MetricsBatch(BaseModel):
    gauges: List[Gauge] = Field(default_factory=list)

    @classmethod
    def from_mapping(cls, metrics: Mapping[str, Any]) -> "MetricsBatch":
        """Build a batch from ``{name: value}`` or ``{name: {"value": value}}``.

        Insertion order of ``metrics`` is kept in ``gauges``.
        """
        gauges = []
        for name, value in metrics.items():
            if isinstance(value, Mapping):
                value = value["value"]
            gauges.append(Gauge(name=str(name), value=value))
        return cls(gauges=gauges)

    def categories(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"gauges": [gauge.model_dump() for gauge in self.gauges]}

    def __len__(self) -> int:
        return len(self.gauges)


__all__ = ["Gauge", "MetricsBatch"]
