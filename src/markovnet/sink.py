"""
Result sinks receiving marginals and notices from an inference run.
"""

from __future__ import annotations

import sys
from typing import Dict, List, Optional, TextIO

from .factor import Factor


def format_values(values) -> str:
    return " ".join(str(float(v)) for v in values)


class ResultSink:
    """Receives inference output; subclasses decide where it goes."""

    def notice(self, message: str) -> None:
        raise NotImplementedError

    def marginal(self, var: int, table: Factor) -> None:
        raise NotImplementedError

    def scalar(self, value: float) -> None:
        raise NotImplementedError

    def emit_marginals(self, marginals: Dict[int, Factor]) -> None:
        for var in sorted(marginals):
            self.marginal(var, marginals[var])


class StreamSink(ResultSink):
    """Write one line per marginal, values space separated in flattening order."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def notice(self, message: str) -> None:
        print(message, file=self.stream)

    def marginal(self, var: int, table: Factor) -> None:
        print(format_values(table.tolist()), file=self.stream)

    def scalar(self, value: float) -> None:
        print(str(float(value)), file=self.stream)


class CollectingSink(ResultSink):
    """Keep everything in memory."""

    def __init__(self):
        self.notices: List[str] = []
        self.marginals: Dict[int, List[float]] = {}
        self.scalars: List[float] = []

    def notice(self, message: str) -> None:
        self.notices.append(message)

    def marginal(self, var: int, table: Factor) -> None:
        self.marginals[var] = table.tolist()

    def scalar(self, value: float) -> None:
        self.scalars.append(float(value))
