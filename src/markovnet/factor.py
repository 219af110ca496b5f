"""
Discrete factor (potential table) stored as a flat tensor with mixed-radix indexing.

A factor over scope ``(x_0, ..., x_k)`` keeps the scope in reverse order of
how it was supplied. The first stored variable has stride 1 and every next
variable's stride is the previous stride times the previous cardinality, so
the flat index of an assignment is ``sum(state[v] * stride[v])``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Tuple

import torch

from .errors import InvalidOperationError


class StrideKind(Enum):
    """How a variable relates to a factor's index layout."""

    ABSENT = "absent"
    PINNED = "pinned"
    PRESENT = "present"


@dataclass(frozen=True)
class StrideLookup:
    """Tagged result of :meth:`Factor.stride`."""

    kind: StrideKind
    stride: int = 0

    @property
    def present(self) -> bool:
        return self.kind is StrideKind.PRESENT

    @property
    def step(self) -> int:
        """Distance the flat index moves when this variable's state ticks."""
        return self.stride if self.kind is StrideKind.PRESENT else 0


_ABSENT = StrideLookup(StrideKind.ABSENT)
_PINNED = StrideLookup(StrideKind.PINNED)


def compute_strides(
    scope: Sequence[int], cardinalities: Sequence[int]
) -> Tuple[Tuple[int, int], ...]:
    """Return ``(variable, stride)`` pairs for ``scope`` in its given order."""
    strides = []
    stride = 1
    for var in scope:
        strides.append((var, stride))
        stride *= cardinalities[var]
    return tuple(strides)


def table_size(scope: Iterable[int], cardinalities: Sequence[int]) -> int:
    size = 1
    for var in scope:
        size *= cardinalities[var]
    return size


def odometer_walk(
    digits: Sequence[Tuple[int, Sequence[int]]], size: int, streams: int
) -> List[torch.Tensor]:
    """
    Visit joint assignments in odometer order while tracking flat indices.

    Args:
        digits: ``(cardinality, steps)`` per variable, fastest digit first.
            ``steps[s]`` is how far index stream ``s`` moves when the digit ticks.
        size: Number of assignments to visit.
        streams: Number of flat indices maintained side by side.

    Returns:
        One ``torch.long`` tensor of length ``size`` per stream, holding that
        stream's flat index at every visited assignment.
    """
    counters = [0] * len(digits)
    cursor = [0] * streams
    indices = [[0] * size for _ in range(streams)]
    for position in range(size):
        for s in range(streams):
            indices[s][position] = cursor[s]
        for d, (card, steps) in enumerate(digits):
            counters[d] += 1
            if counters[d] == card:
                # Carry into the next digit.
                counters[d] = 0
                for s in range(streams):
                    cursor[s] -= (card - 1) * steps[s]
            else:
                for s in range(streams):
                    cursor[s] += steps[s]
                break
    return [torch.tensor(idx, dtype=torch.long) for idx in indices]


class Factor:
    """Potential table over an ordered set of discrete variables."""

    def __init__(self, scope: Iterable[int], cardinalities: Sequence[int]):
        """
        Args:
            scope: Variable ids in supplied order (stored reversed).
            cardinalities: Global cardinality table indexed by variable id.
        """
        scope = tuple(scope)
        if len(set(scope)) != len(scope):
            raise ValueError(f"Duplicate variable in factor scope {scope}.")
        for var in scope:
            if not 0 <= var < len(cardinalities):
                raise ValueError(
                    f"Variable {var} in factor scope {scope} has no cardinality "
                    f"(known variables: 0..{len(cardinalities) - 1})."
                )
        self._scope: Tuple[int, ...] = scope[::-1]
        self._cardinalities = cardinalities
        self._strides: Tuple[Tuple[int, int], ...] = ()
        self._pinned: FrozenSet[int] = frozenset()
        self._values = torch.zeros(0, dtype=torch.float64)
        self._cursor = 0

    @classmethod
    def from_values(
        cls,
        scope: Iterable[int],
        cardinalities: Sequence[int],
        values: Sequence[float] | torch.Tensor,
    ) -> "Factor":
        """Create a factor and populate it in one call."""
        values = torch.as_tensor(values, dtype=torch.float64).reshape(-1)
        factor = cls(scope, cardinalities)
        factor.initialize_values(values.numel())
        factor.set_values(values)
        return factor

    def initialize_values(self, length: int) -> None:
        """Allocate ``length`` zero entries and compute strides over the stored scope."""
        expected = table_size(self._scope, self._cardinalities)
        if length != expected:
            raise InvalidOperationError(
                f"Factor over {self._scope} needs {expected} values, got {length}."
            )
        self._values = torch.zeros(length, dtype=torch.float64)
        self._cursor = 0
        self._strides = compute_strides(self._scope, self._cardinalities)

    def set_values(self, values: Sequence[float] | torch.Tensor) -> None:
        """Append ``values`` after the ones already set, in flat index order."""
        values = torch.as_tensor(values, dtype=torch.float64).reshape(-1)
        end = self._cursor + values.numel()
        if end > self._values.numel():
            raise InvalidOperationError(
                f"Factor over {self._scope} holds {self._values.numel()} values; "
                f"cannot set {end}."
            )
        self._values[self._cursor:end] = values
        self._cursor = end

    @property
    def scope(self) -> Tuple[int, ...]:
        return self._scope

    @property
    def strides(self) -> Tuple[Tuple[int, int], ...]:
        return self._strides

    @property
    def size(self) -> int:
        return self._values.numel()

    @property
    def values(self) -> torch.Tensor:
        """Copy of the flat table; edits to it do not reach the factor."""
        return self._values.clone()

    @property
    def cardinalities(self) -> Sequence[int]:
        return self._cardinalities

    def cardinality(self, var: int) -> int:
        return self._cardinalities[var]

    def value_at(self, index: int) -> float:
        return float(self._values[index])

    def stride(self, var: int) -> StrideLookup:
        for scope_var, stride in self._strides:
            if scope_var == var:
                return StrideLookup(StrideKind.PRESENT, stride)
        if var in self._pinned:
            return _PINNED
        return _ABSENT

    def in_scope(self, var: int) -> bool:
        return var in self._scope

    __contains__ = in_scope

    def index_of(self, assignment: Mapping[int, int]) -> int:
        """Flat index of ``assignment``; variables outside the scope are ignored."""
        return sum(assignment[var] * stride for var, stride in self._strides)

    def value_of(self, assignment: Mapping[int, int]) -> float:
        return self.value_at(self.index_of(assignment))

    def assignment_of(self, index: int) -> Dict[int, int]:
        """Decode a flat index into ``{variable: state}``."""
        return {
            var: (index // stride) % self._cardinalities[var]
            for var, stride in self._strides
        }

    def copy(self) -> "Factor":
        """Return a factor with its own value storage."""
        clone = Factor.__new__(Factor)
        clone._scope = self._scope
        clone._cardinalities = self._cardinalities
        clone._strides = self._strides
        clone._pinned = self._pinned
        clone._values = self._values.clone()
        clone._cursor = self._cursor
        return clone

    def sum(self) -> float:
        return float(self._values.sum())

    def normalize_by_max(self) -> None:
        """Divide every entry by the largest one (stabilization, not probability)."""
        if self.size == 0:
            return
        peak = self._values.max()
        if peak > 0:
            self._values = self._values / peak

    def normalize_by_sum(self) -> None:
        """Divide every entry by the total so the table sums to one."""
        total = self._values.sum()
        if total > 0:
            self._values = self._values / total

    def clamp(self, var: int, state: int) -> None:
        """Zero every entry whose assignment gives ``var`` a state other than ``state``."""
        lookup = self.stride(var)
        if not lookup.present:
            return
        positions = torch.arange(self.size, dtype=torch.long)
        states = (positions // lookup.stride) % self._cardinalities[var]
        self._values = torch.where(
            states == state, self._values, torch.zeros_like(self._values)
        )

    def sum_out(self, var: int) -> None:
        """
        Marginalize ``var`` out of this factor in place.

        Walks every original flat index once. The removed variable keeps a
        step of 0 in the walk, so ticking through its states leaves the target
        index unchanged and the matching entries accumulate into one cell.
        """
        if var not in self._scope:
            return

        card = self._cardinalities[var]
        new_scope = tuple(v for v in self._scope if v != var)
        new_strides = compute_strides(new_scope, self._cardinalities)

        remaining = iter(new_strides)
        digits = []
        for scope_var in self._scope:
            if scope_var == var:
                digits.append((card, (0,)))
            else:
                _, stride = next(remaining)
                digits.append((self._cardinalities[scope_var], (stride,)))

        (target,) = odometer_walk(digits, self.size, 1)
        result = torch.zeros(self.size // card, dtype=torch.float64)
        result.index_add_(0, target, self._values)

        self._scope = new_scope
        self._strides = new_strides
        self._pinned = self._pinned | {var}
        self._values = result
        self._cursor = result.numel()

    def tolist(self) -> List[float]:
        return self._values.tolist()

    def __repr__(self):
        return f"Factor(scope={self._scope}, size={self.size})"
