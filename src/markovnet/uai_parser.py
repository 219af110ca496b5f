"""
UAI file format parser for Markov networks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from .errors import FileAccessError, MalformedInputError


@dataclass
class RawFactor:
    """Clique scope (file order) and its flattened table as read from disk."""

    vars: Tuple[int, ...]
    values: np.ndarray

    def __repr__(self):
        return f"RawFactor(vars={self.vars}, size={len(self.values)})"


@dataclass
class UAIModel:
    """UAI model containing variables, cardinalities, and factors."""

    nvars: int
    cards: List[int]
    factors: List[RawFactor]

    def __repr__(self):
        return f"UAIModel(nvars={self.nvars}, nfactors={len(self.factors)})"


def _read_text(filepath: str) -> str:
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(f"Cannot read {filepath}: {e.strerror or e}") from e


def _parse_ints(text: str, what: str) -> List[int]:
    try:
        return [int(x) for x in text.split()]
    except ValueError as e:
        raise MalformedInputError(f"Expected integers for {what}, got {text!r}.") from e


def read_model_file(filepath: str) -> UAIModel:
    """
    Parse UAI format model file.

    Args:
        filepath: Path to .uai file

    Returns:
        UAIModel object
    """
    return read_model_from_string(_read_text(filepath))


def read_model_from_string(content: str) -> UAIModel:
    """
    Parse UAI model from string.

    Header, cardinality and scope lines are read line by line; the factor
    tables that follow are one token stream and may wrap across lines.

    Args:
        content: UAI file content as string

    Returns:
        UAIModel object
    """
    lines = [line.strip() for line in content.split("\n") if line.strip()]
    if len(lines) < 4:
        raise MalformedInputError("Malformed UAI model: expected at least 4 header lines.")
    network_type = lines[0]
    if network_type != "MARKOV":
        raise MalformedInputError(
            f"Unsupported UAI network type: {network_type!r}. Expected 'MARKOV'."
        )

    header = _parse_ints(lines[1], "the variable count")
    if len(header) != 1:
        raise MalformedInputError(f"Expected a single variable count, got {lines[1]!r}.")
    nvars = header[0]
    cards = _parse_ints(lines[2], "cardinalities")
    if len(cards) != nvars:
        raise MalformedInputError(f"Expected {nvars} cardinalities, got {len(cards)}.")
    for var, card in enumerate(cards):
        if card <= 0:
            raise MalformedInputError(
                f"Variable {var} has non-positive cardinality {card}."
            )

    header = _parse_ints(lines[3], "the factor count")
    if len(header) != 1:
        raise MalformedInputError(f"Expected a single factor count, got {lines[3]!r}.")
    ntables = header[0]
    if len(lines) < 4 + ntables:
        raise MalformedInputError(
            f"Malformed UAI model: expected {ntables} scope lines, got {len(lines) - 4}."
        )

    scopes: List[Tuple[int, ...]] = []
    for i in range(ntables):
        parts = _parse_ints(lines[4 + i], f"scope line {4 + i}")
        if not parts or len(parts) - 1 != parts[0]:
            raise MalformedInputError(
                f"Scope size mismatch on line {4 + i}: {lines[4 + i]!r}."
            )
        scope = tuple(parts[1:])
        for var in scope:
            if not 0 <= var < nvars:
                raise MalformedInputError(
                    f"Scope on line {4 + i} mentions unknown variable {var}."
                )
        if len(set(scope)) != len(scope):
            raise MalformedInputError(
                f"Scope on line {4 + i} repeats a variable: {scope}."
            )
        scopes.append(scope)

    tokens: List[str] = []
    for line in lines[4 + ntables:]:
        tokens.extend(line.split())
    cursor = 0

    factors: List[RawFactor] = []
    for scope in scopes:
        if cursor >= len(tokens):
            raise MalformedInputError("Unexpected end of UAI factor table data.")
        nelements = _parse_ints(tokens[cursor], "a table length")[0]
        cursor += 1
        expected_size = 1
        for card in (cards[v] for v in scope):
            expected_size *= card
        if nelements != expected_size:
            raise MalformedInputError(
                f"Factor table size mismatch for scope {scope}: "
                f"expected {expected_size}, got {nelements}."
            )
        if cursor + nelements > len(tokens):
            raise MalformedInputError("Unexpected end of UAI factor table data.")
        try:
            values = np.asarray(tokens[cursor:cursor + nelements], dtype=np.float64)
        except ValueError as e:
            raise MalformedInputError(f"Non-numeric value in table for scope {scope}.") from e
        cursor += nelements
        factors.append(RawFactor(scope, values))

    if cursor != len(tokens):
        raise MalformedInputError(
            f"Unexpected trailing data: {len(tokens) - cursor} extra token(s)."
        )

    return UAIModel(nvars, cards, factors)


def read_evidence_file(filepath: str) -> Dict[int, int]:
    """
    Parse evidence file (.evid format).

    Args:
        filepath: Path to .evid file

    Returns:
        Dictionary mapping variable id to observed state
    """
    if not filepath:
        return {}
    lines = [line for line in _read_text(filepath).split("\n") if line.strip()]
    if not lines:
        return {}
    parts = _parse_ints(lines[-1], "evidence")
    nobsvars = parts[0]
    if len(parts) != 1 + 2 * nobsvars:
        raise MalformedInputError(
            f"Malformed evidence line: expected {1 + 2 * nobsvars} entries, got {len(parts)}."
        )
    evidence: Dict[int, int] = {}
    for i in range(nobsvars):
        evidence[parts[1 + 2 * i]] = parts[2 + 2 * i]
    return evidence
