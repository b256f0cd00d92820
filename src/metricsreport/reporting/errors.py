from __future__ import annotations


class UnsupportedTimeUnitError(ValueError):
    pass


class ReporterStateError(RuntimeError):
    pass
