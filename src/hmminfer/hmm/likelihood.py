"""Probability of a fully observed state/observation sequence pair."""

from typing import Sequence

import jax.numpy as jnp

from hmminfer.errors import EmptySequence, LengthMismatch
from hmminfer.model import START, Model


def _encode_pair(
    model: Model,
    states: Sequence[str],
    observations: Sequence[str],
):
    if len(states) != len(observations):
        raise LengthMismatch(len(states), len(observations))
    return model.encode_states(states), model.encode_observations(observations)


def likelihood(
    model: Model,
    states: Sequence[str],
    observations: Sequence[str],
) -> float:
    """P(O|Q): product of emission probabilities along the given path.

    The transition matrix is not consulted. An empty pair yields 1.0.
    """
    q, o = _encode_pair(model, states, observations)
    return float(jnp.prod(model.emission[q, o]))


def joint_likelihood(
    model: Model,
    states: Sequence[str],
    observations: Sequence[str],
) -> float:
    """P(O, Q): emissions times transitions, starting from the start state."""
    q, o = _encode_pair(model, states, observations)
    if len(states) == 0:
        raise EmptySequence("state sequence")

    # Full-matrix indexing: source 0 is start, emitting state i is row i+1
    src = jnp.concatenate([jnp.array([START], dtype=jnp.int32), q[:-1] + 1])
    trans = model.transition[src, q + 1]
    return float(jnp.prod(trans * model.emission[q, o]))
