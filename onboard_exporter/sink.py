from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from prometheus_client.core import GaugeMetricFamily

from .aggregators import DESCRIPTIONS
from .models import SourceSnapshot


class MetricSink(ABC):
    """Destination for published metric values.

    Every call replaces the whole prior value of that metric: a scalar, or
    the complete label map of a labeled series.
    """

    @abstractmethod
    def set(self, name: str, value: float) -> None:
        """Replace a scalar metric."""

    @abstractmethod
    def set_labeled(self, name: str, label: str, values: Mapping[str, float]) -> None:
        """Replace every series of a labeled metric."""

    def publish(self, snapshot: SourceSnapshot) -> None:
        for result in snapshot.results:
            if result.is_labeled:
                self.set_labeled(result.name, result.label, result.value)
            else:
                self.set(result.name, result.value)


class PrometheusSink(MetricSink):
    """prometheus_client collector that serves the latest published values.

    The scrape trigger runs inside collect(), so a /metrics request blocks
    until the refresh cycle it started has finished publishing."""

    def __init__(self, descriptions: Optional[Mapping[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._scalars: Dict[str, float] = {}
        self._labeled: Dict[str, Tuple[str, Dict[str, float]]] = {}
        self._descriptions = dict(DESCRIPTIONS if descriptions is None else descriptions)
        self._trigger: Optional[Callable[[], object]] = None

    def on_scrape(self, trigger: Callable[[], object]) -> None:
        self._trigger = trigger

    def set(self, name: str, value: float) -> None:
        with self._lock:
            self._scalars[name] = float(value)

    def set_labeled(self, name: str, label: str, values: Mapping[str, float]) -> None:
        replacement = {str(k): float(v) for k, v in values.items()}
        with self._lock:
            self._labeled[name] = (label, replacement)

    def value(self, name: str, label_value: Optional[str] = None) -> Optional[float]:
        with self._lock:
            if label_value is None:
                return self._scalars.get(name)
            entry = self._labeled.get(name)
            return entry[1].get(label_value) if entry else None

    def describe(self) -> Iterator[GaugeMetricFamily]:
        # Registering must not start a refresh cycle.
        return iter(())

    def collect(self) -> Iterator[GaugeMetricFamily]:
        if self._trigger is not None:
            self._trigger()

        with self._lock:
            scalars = dict(self._scalars)
            labeled = {name: (label, dict(values)) for name, (label, values) in self._labeled.items()}

        for name in sorted(scalars):
            yield GaugeMetricFamily(name, self._help(name), value=scalars[name])

        for name in sorted(labeled):
            label, values = labeled[name]
            family = GaugeMetricFamily(name, self._help(name), labels=[label])
            for key in sorted(values):
                family.add_metric([key], values[key])
            yield family

    def _help(self, name: str) -> str:
        return self._descriptions.get(name, name.replace("_", " "))
