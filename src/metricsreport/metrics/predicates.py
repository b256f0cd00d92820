from __future__ import annotations

import re
from typing import Callable, Iterable, Optional

from metricsreport.common.models import MetricName
from metricsreport.metrics.base import Metric

Predicate = Callable[[MetricName, Metric], bool]


def ALL(_name: MetricName, _metric: Metric) -> bool:
    return True


def build_predicate(
    groups: Optional[Iterable[str]] = None,
    types: Optional[Iterable[str]] = None,
    name_pattern: Optional[str] = None,
) -> Predicate:
    group_set = frozenset(groups or ())
    type_set = frozenset(types or ())
    pattern = re.compile(name_pattern) if name_pattern else None
    if not group_set and not type_set and pattern is None:
        return ALL

    def _predicate(name: MetricName, _metric: Metric) -> bool:
        if group_set and name.group not in group_set:
            return False
        if type_set and name.type not in type_set:
            return False
        if pattern is not None and pattern.search(name.name) is None:
            return False
        return True

    return _predicate
