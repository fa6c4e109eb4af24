"""Discrete-emission HMM with a single start pseudo-state.

Transition matrix layout (N emitting states):
    transition[0, 1:]   P(first state | start)
    transition[i, j]    P(state j-1 at t | state i-1 at t-1), i, j in [1, N]
    transition[:, 0]    transitions into start; carried but never read

The model is immutable once built. Label and symbol indices come from the
order of the `states` and `observations` tuples given at construction.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

import jax.numpy as jnp
import numpy as np

from hmminfer.config import (
    ICE_CREAM_EMISSION,
    ICE_CREAM_OBSERVATIONS,
    ICE_CREAM_STATES,
    ICE_CREAM_TRANS,
    ValidationConfig,
)
from hmminfer.errors import InvalidModel, UnknownSymbol
from hmminfer.types import Array

log = logging.getLogger(__name__)

START = 0


@dataclass(frozen=True, eq=False)
class Model:
    """Read-only HMM tables plus label/symbol index lookups.

    states: (N,) emitting-state labels
    observations: (M,) observation symbols
    transition: (N+1, N+1) transition probabilities, row/column 0 = start
    emission: (N, M) emission probabilities
    """
    states: tuple[str, ...]
    observations: tuple[str, ...]
    transition: Array
    emission: Array
    _state_idx: dict = field(init=False, repr=False)
    _obs_idx: dict = field(init=False, repr=False)

    def __post_init__(self):
        N, M = len(self.states), len(self.observations)
        if N == 0:
            raise InvalidModel("Model needs at least one emitting state")
        if M == 0:
            raise InvalidModel("Model needs at least one observation symbol")
        if self.transition.shape != (N + 1, N + 1):
            raise InvalidModel(
                f"transition must have shape {(N + 1, N + 1)}, "
                f"got {tuple(self.transition.shape)}"
            )
        if self.emission.shape != (N, M):
            raise InvalidModel(
                f"emission must have shape {(N, M)}, got {tuple(self.emission.shape)}"
            )

        state_idx = {label: i for i, label in enumerate(self.states)}
        obs_idx = {symbol: v for v, symbol in enumerate(self.observations)}
        if len(state_idx) != N:
            raise InvalidModel(f"Duplicate state labels: {self.states}")
        if len(obs_idx) != M:
            raise InvalidModel(f"Duplicate observation symbols: {self.observations}")
        object.__setattr__(self, "_state_idx", state_idx)
        object.__setattr__(self, "_obs_idx", obs_idx)

    def num_states(self) -> int:
        return len(self.states)

    def num_observations(self) -> int:
        return len(self.observations)

    def state_index(self, label: str) -> int:
        try:
            return self._state_idx[label]
        except KeyError:
            raise UnknownSymbol("state", label) from None

    def observation_index(self, symbol: str) -> int:
        try:
            return self._obs_idx[symbol]
        except KeyError:
            raise UnknownSymbol("observation", symbol) from None

    def transition_prob(self, from_index: int, to_index: int) -> float:
        """P(to | from) in full-matrix indexing (0 = start, i = state i-1)."""
        return float(self.transition[from_index, to_index])

    def emission_prob(self, state_index: int, obs_index: int) -> float:
        return float(self.emission[state_index, obs_index])

    @property
    def init_probs(self) -> Array:
        """(N,) P(state at t=0), the start row restricted to emitting states."""
        return self.transition[START, 1:]

    @property
    def trans_probs(self) -> Array:
        """(N, N) transitions between emitting states."""
        return self.transition[1:, 1:]

    def encode_states(self, labels: Sequence[str]) -> Array:
        return jnp.array([self.state_index(q) for q in labels], dtype=jnp.int32)

    def encode_observations(self, symbols: Sequence[str]) -> Array:
        return jnp.array([self.observation_index(o) for o in symbols], dtype=jnp.int32)

    def decode_states(self, indices) -> list[str]:
        return [self.states[int(i)] for i in indices]


def validate_model(model: Model, atol: float = 1e-6) -> None:
    """Check that every table is a probability distribution.

    Raises InvalidModel on the first violation. Column 0 of the transition
    matrix is excluded from row sums, so the start row need not carry a
    self-loop back to start.
    """
    trans = np.asarray(model.transition, dtype=np.float64)
    emit = np.asarray(model.emission, dtype=np.float64)

    for name, table in [("transition", trans), ("emission", emit)]:
        if not np.all(np.isfinite(table)):
            raise InvalidModel(f"{name} contains non-finite values")
        if np.any(table < 0.0) or np.any(table > 1.0):
            raise InvalidModel(f"{name} probabilities must lie in [0, 1]")

    row_sums = trans[:, 1:].sum(axis=1)
    for i, total in enumerate(row_sums):
        if abs(total - 1.0) > atol:
            source = "START" if i == START else model.states[i - 1]
            raise InvalidModel(
                f"transition row {source!r} sums to {total:.6f}, expected 1"
            )

    emit_sums = emit.sum(axis=1)
    for j, total in enumerate(emit_sums):
        if abs(total - 1.0) > atol:
            raise InvalidModel(
                f"emission row {model.states[j]!r} sums to {total:.6f}, expected 1"
            )


def build_model(
    states: Sequence[str],
    observations: Sequence[str],
    transition,
    emission,
    validation: ValidationConfig | None = None,
) -> Model:
    """Build a Model from plain tables.

    Args:
        states: N emitting-state labels, in index order.
        observations: M observation symbols, in index order.
        transition: (N+1) x (N+1) nested list or array, row 0 = from start.
        emission: N x M nested list or array, or a mapping label -> M-vector.
        validation: Validation settings (default: validate with atol=1e-6).

    Returns:
        Immutable Model.
    """
    if validation is None:
        validation = ValidationConfig()

    for name, labels in [("states", states), ("observations", observations)]:
        if isinstance(labels, (str, bytes, dict)):
            raise InvalidModel(f"{name} must be a list of labels, got {type(labels).__name__}")

    states = tuple(str(s) for s in states)
    observations = tuple(str(o) for o in observations)

    if isinstance(emission, dict):
        missing = [s for s in states if s not in emission]
        if missing:
            raise InvalidModel(f"No emission vector for states: {missing}")
        emission = [emission[s] for s in states]

    try:
        trans = jnp.asarray(np.asarray(transition, dtype=np.float64))
        emit = jnp.asarray(np.asarray(emission, dtype=np.float64))
    except ValueError as e:
        raise InvalidModel(f"Tables must be rectangular numeric arrays: {e}") from e

    model = Model(states=states, observations=observations, transition=trans, emission=emit)
    if validation.validate:
        validate_model(model, atol=validation.atol)

    log.debug(
        f"Built model with {model.num_states()} states, "
        f"{model.num_observations()} symbols"
    )
    return model


def ice_cream_model() -> Model:
    """2-state HOT/COLD model emitting 1, 2 or 3 ice creams per day."""
    return build_model(
        ICE_CREAM_STATES, ICE_CREAM_OBSERVATIONS, ICE_CREAM_TRANS, ICE_CREAM_EMISSION,
    )
