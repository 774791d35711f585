"""
Mind Validator — Structural and value checks for a ``NetworkState``.

The step engine performs no checking of its own; a state must pass
``validate()`` once before the first ``step()`` and again after any
external mutation.  Checks run in a fixed order and stop at the first
violation:

    1. Shape:    all five vectors share one length N, both matrices N x N.
    2. Range:    every value inside its documented interval (NaN / inf fail).
    3. Diagonal: no neuron feeds itself through either matrix.

Usage::

    from mind_validator import validate, find_violation
    validate(state)                 # raises ValidationError subclass
    err = find_violation(state)     # or returns it (None when valid)

# ---- Changelog ----
# [2026-10-19] Initial implementation.
#   What: ErrorKind taxonomy, ValidationError hierarchy, find_violation()
#         and validate().
#   Why:  Single precondition checker shared by the constructor (shape
#         only) and by callers that mutate a state between ticks.
# -------------------
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple

import numpy as np

if TYPE_CHECKING:
    from mind_state import NetworkState

logger = logging.getLogger("mind.validator")


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------

class ErrorKind(Enum):
    """Category of a validation failure."""
    SHAPE_MISMATCH = auto()
    OUT_OF_RANGE = auto()
    NON_ZERO_SELF_WEIGHT = auto()


class ValidationError(ValueError):
    """Base class for every validation failure.

    Attributes:
        kind: ``ErrorKind`` of the failure.
        message: Human-readable description.
        field: Name of the offending field, when one can be named.
        index: Offending index (int for vectors, (row, col) for matrices).
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        index: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.index = index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.message == other.message
            and self.field == other.field
            and self.index == other.index
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.message, self.field, self.index))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ShapeMismatch(ValidationError):
    """Vector or matrix dimensions disagree."""
    kind = ErrorKind.SHAPE_MISMATCH


class OutOfRange(ValidationError):
    """A value lies outside its documented interval (includes NaN / inf)."""
    kind = ErrorKind.OUT_OF_RANGE


class NonZeroSelfWeight(ValidationError):
    """A diagonal entry of a connection matrix is not exactly zero."""
    kind = ErrorKind.NON_ZERO_SELF_WEIGHT


# ---------------------------------------------------------------------------
# Documented ranges
# ---------------------------------------------------------------------------

VECTOR_FIELDS: Tuple[str, ...] = (
    "activation_thresholds",
    "reactivation_delays",
    "signal_map",
    "next_activations",
    "neural_activity",
)

MATRIX_FIELDS: Tuple[str, ...] = ("outputs_weights", "input_weights")

# field -> half-open interval [low, high)
VALUE_RANGES = {
    "activation_thresholds": (0.0, 1.0),
    "reactivation_delays": (0.0, 10.0),
    "signal_map": (0.0, 1.0),
    "outputs_weights": (0.0, 1.0),
    "input_weights": (0.0, 1.0),
}


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def check_shapes(
    vectors: Sequence[Tuple[str, Any]],
    matrices: Sequence[Tuple[str, Any]],
) -> Optional[ShapeMismatch]:
    """Return a ``ShapeMismatch`` if the arrays disagree on N, else None.

    Shared with ``NetworkState.__init__`` so that construction and runtime
    validation agree on what a well-formed state is.
    """
    n: Optional[int] = None
    for name, arr in vectors:
        shape = np.shape(arr)
        if len(shape) != 1:
            return ShapeMismatch(
                f"{name} must be 1-D, got shape {shape}", field=name
            )
        if n is None:
            n = shape[0]
        elif shape[0] != n:
            return ShapeMismatch(
                f"{name} has length {shape[0]}, expected {n}", field=name
            )

    if n is None or n < 1:
        return ShapeMismatch("network must have at least one neuron")

    for name, arr in matrices:
        shape = np.shape(arr)
        if shape != (n, n):
            return ShapeMismatch(
                f"{name} has shape {shape}, expected ({n}, {n})", field=name
            )
    return None


def _first_bad_index(bad: np.ndarray) -> Any:
    """Row-major first True position of a boolean mask."""
    pos = tuple(int(i) for i in np.argwhere(bad)[0])
    return pos[0] if len(pos) == 1 else pos


def _check_range(name: str, arr: np.ndarray) -> Optional[OutOfRange]:
    if name in VALUE_RANGES:
        low, high = VALUE_RANGES[name]
        # NaN compares False on both sides, so it lands in ``bad`` too.
        bad = ~((arr >= low) & (arr < high))
        if bad.any():
            idx = _first_bad_index(bad)
            return OutOfRange(
                f"{name}[{idx}] = {float(arr[idx])!r} outside [{low}, {high})",
                field=name,
                index=idx,
            )
    else:
        # Dynamic fields only need to be finite.
        bad = ~np.isfinite(arr)
        if bad.any():
            idx = _first_bad_index(bad)
            return OutOfRange(
                f"{name}[{idx}] = {float(arr[idx])!r} is not finite",
                field=name,
                index=idx,
            )
    return None


def _check_diagonal(name: str, matrix: np.ndarray) -> Optional[NonZeroSelfWeight]:
    diag = np.diagonal(matrix)
    bad = diag != 0.0
    if bad.any():
        i = int(np.flatnonzero(bad)[0])
        return NonZeroSelfWeight(
            f"{name}[{i}][{i}] = {float(diag[i])!r}, self weight must be 0",
            field=name,
            index=(i, i),
        )
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_violation(state: "NetworkState") -> Optional[ValidationError]:
    """Return the first invariant violation of ``state``, or None.

    Read-only: never mutates ``state`` and holds no hidden state, so two
    calls on an unmutated state return equal results.
    """
    vectors = [(name, getattr(state, name)) for name in VECTOR_FIELDS]
    matrices = [(name, getattr(state, name)) for name in MATRIX_FIELDS]

    err: Optional[ValidationError] = check_shapes(vectors, matrices)
    if err is not None:
        return err

    # Range checks follow the declaration order of the data model.
    for name in (
        "activation_thresholds",
        "reactivation_delays",
        "signal_map",
        "outputs_weights",
        "input_weights",
        "next_activations",
        "neural_activity",
    ):
        err = _check_range(name, np.asarray(getattr(state, name)))
        if err is not None:
            return err

    for name in MATRIX_FIELDS:
        err = _check_diagonal(name, np.asarray(getattr(state, name)))
        if err is not None:
            return err

    return None


def validate(state: "NetworkState") -> None:
    """Raise the first ``ValidationError`` found in ``state``.

    Returns None when every invariant holds.
    """
    err = find_violation(state)
    if err is not None:
        logger.debug("Validation failed: %s", err.message)
        raise err


def is_valid(state: "NetworkState") -> bool:
    """True if ``state`` satisfies every invariant."""
    return find_violation(state) is None
