"""Type aliases and named tuples for hmminfer."""

from typing import NamedTuple

import jax
import jax.numpy as jnp

# Linear-domain products need float64 to match plain double arithmetic.
jax.config.update("jax_enable_x64", True)

# Array type alias (JAX arrays)
Array = jnp.ndarray


class Trellis(NamedTuple):
    """Dynamic-programming table of partial path scores.

    scores: (N, T) alpha or delta values, indexed scores[state, t]
    backpointers: (N, T) int32 best predecessor per cell (-1 at t=0, where
        the predecessor is the start pseudo-state), or None for Forward
    log_space: whether scores hold log-probabilities
    """
    scores: Array
    backpointers: Array | None
    log_space: bool = False

    @property
    def n_states(self) -> int:
        return self.scores.shape[0]

    @property
    def n_steps(self) -> int:
        return self.scores.shape[1]


class ForwardResult(NamedTuple):
    """Results from the forward algorithm.

    value: P(O), or log P(O) when trellis.log_space is set
    trellis: alpha table
    """
    value: float
    trellis: Trellis


class ViterbiResult(NamedTuple):
    """Results from the Viterbi algorithm.

    labels: (T,) most likely state labels
    states: (T,) int32 most likely state indices
    score: probability of the best path (log-probability in log space)
    trellis: delta table with backpointers
    """
    labels: list[str]
    states: Array
    score: float
    trellis: Trellis
