"""Trellis layout and backtrace shared by the Forward and Viterbi engines.

Engines scan over time and produce (T, N) stacks; the Trellis stores them
transposed as (N, T) so cells read scores[state, t].
"""

import jax
import jax.numpy as jnp
from jax import lax

from hmminfer.types import Array, Trellis

NO_PREDECESSOR = -1


def make_trellis(
    scores_tn: Array,
    backpointers_tn: Array | None = None,
    log_space: bool = False,
) -> Trellis:
    """Wrap (T, N) scan outputs as an (N, T) Trellis.

    Args:
        scores_tn: (T, N) alpha or delta per timestep.
        backpointers_tn: (T-1, N) argmax predecessors for t = 1..T-1, or None.
        log_space: Whether scores are log-probabilities.
    """
    backpointers = None
    if backpointers_tn is not None:
        N = scores_tn.shape[1]
        first = jnp.full((1, N), NO_PREDECESSOR, dtype=jnp.int32)
        backpointers = jnp.concatenate(
            [first, backpointers_tn.astype(jnp.int32)], axis=0
        ).T
    return Trellis(scores=scores_tn.T, backpointers=backpointers, log_space=log_space)


def best_final_state(scores: Array) -> Array:
    """Argmax over states at the last timestep; ties go to the lowest index."""
    return jnp.argmax(scores[:, -1]).astype(jnp.int32)


@jax.jit
def backtrace(backpointers: Array, last_state: Array) -> Array:
    """Follow backpointers from (last_state, T-1) back to t = 0.

    Args:
        backpointers: (N, T) int32 best predecessor per cell.
        last_state: scalar int32 state at T-1.

    Returns:
        (T,) int32 state path.
    """
    # psi[t] holds predecessors of timestep t, t = 1..T-1
    psi = backpointers.T[1:]

    def step(state, psi_t):
        prev_state = psi_t[state]
        return prev_state, prev_state

    _, states_reversed = lax.scan(step, last_state, psi[::-1])
    return jnp.concatenate([states_reversed[::-1], last_state[None]])
