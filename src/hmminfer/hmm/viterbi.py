"""Viterbi decoding using jax.lax.scan.

Finds the most likely hidden state sequence. The recurrence mirrors the
forward pass with max in place of sum and records the argmax predecessor
of every cell, so the backtrace is valid for any number of states.
"""

import logging
from typing import Sequence

import jax
import jax.numpy as jnp
from jax import lax

from hmminfer.errors import EmptySequence
from hmminfer.hmm.batch import encode_batch
from hmminfer.hmm.trellis import backtrace, best_final_state, make_trellis
from hmminfer.model import Model
from hmminfer.types import Array, ViterbiResult

log = logging.getLogger(__name__)


def _viterbi_scan(
    delta_0: Array,
    trans: Array,
    emit_rest: Array,
    log_space: bool,
) -> tuple[Array, Array]:
    """Fill delta for t = 1..T-1.

    Returns:
        delta: (T, N) best path scores.
        psi: (T-1, N) argmax predecessors.
    """

    def scan_fn(delta_prev, emit_t):
        # candidates[k, j] = delta_prev[k] * A[k, j] * B[j, o_t]
        # Emission stays inside the argmax: when it is zero every candidate
        # ties at zero and the backpointer falls to state 0.
        if log_space:
            candidates = delta_prev[:, None] + trans + emit_t[None, :]
        else:
            candidates = delta_prev[:, None] * trans * emit_t[None, :]
        # argmax returns the first maximum, so ties go to the lowest index
        psi_t = candidates.argmax(axis=0)  # (N,)
        delta_t = candidates.max(axis=0)
        return delta_t, (delta_t, psi_t)

    _, (deltas_rest, psi) = lax.scan(scan_fn, delta_0, emit_rest)
    delta = jnp.concatenate([delta_0[None, :], deltas_rest], axis=0)
    return delta, psi.astype(jnp.int32)


@jax.jit
def _viterbi_linear(
    init: Array,
    trans: Array,
    emission: Array,
    obs: Array,
) -> tuple[Array, Array]:
    """Viterbi recurrence for one observation sequence.

    Args:
        init: (N,) P(state at t=0 | start).
        trans: (N, N) transitions between emitting states.
        emission: (N, M) emission probabilities.
        obs: (T,) int32 observation indices.

    Returns:
        delta: (T, N) best path probabilities.
        psi: (T-1, N) int32 backpointers.
    """
    emit = emission[:, obs].T  # (T, N)
    delta_0 = init * emit[0]
    return _viterbi_scan(delta_0, trans, emit[1:], log_space=False)


@jax.jit
def _viterbi_log(
    init: Array,
    trans: Array,
    emission: Array,
    obs: Array,
) -> tuple[Array, Array]:
    """Log-space Viterbi recurrence; same arguments as _viterbi_linear."""
    log_emit = jnp.log(emission[:, obs].T)
    delta_0 = jnp.log(init) + log_emit[0]
    return _viterbi_scan(delta_0, jnp.log(trans), log_emit[1:], log_space=True)


def viterbi_decode(
    model: Model,
    observations: Sequence[str],
    log_space: bool = False,
) -> ViterbiResult:
    """Most likely state sequence, with its score and the delta trellis.

    Args:
        model: HMM to decode under.
        observations: (T,) observation symbols, T >= 1.
        log_space: Compute in log space; score is then a log-probability.

    Returns:
        ViterbiResult with T state labels.
    """
    if len(observations) == 0:
        raise EmptySequence()
    obs = model.encode_observations(observations)

    fn = _viterbi_log if log_space else _viterbi_linear
    delta, psi = fn(model.init_probs, model.trans_probs, model.emission, obs)

    trellis = make_trellis(delta, psi, log_space=log_space)
    last = best_final_state(trellis.scores)
    states = backtrace(trellis.backpointers, last)
    score = float(trellis.scores[last, -1])

    labels = model.decode_states(states)
    log.debug(f"viterbi: T={len(observations)} log_space={log_space} path={labels}")
    return ViterbiResult(labels=labels, states=states, score=score, trellis=trellis)


def viterbi(model: Model, observations: Sequence[str]) -> list[str]:
    """Most likely state label sequence for the observations."""
    return viterbi_decode(model, observations).labels


@jax.jit
def _decode_linear(init, trans, emission, obs):
    delta, psi = _viterbi_linear(init, trans, emission, obs)
    trellis = make_trellis(delta, psi)
    last = best_final_state(trellis.scores)
    return backtrace(trellis.backpointers, last), trellis.scores[last, -1]


@jax.jit
def _decode_log(init, trans, emission, obs):
    delta, psi = _viterbi_log(init, trans, emission, obs)
    trellis = make_trellis(delta, psi, log_space=True)
    last = best_final_state(trellis.scores)
    return backtrace(trellis.backpointers, last), trellis.scores[last, -1]


def viterbi_batch(
    model: Model,
    sequences: Sequence[Sequence[str]],
    log_space: bool = False,
) -> tuple[list[list[str]], Array]:
    """Batched Viterbi decoding over equal-length sequences.

    Uses jax.vmap over the sequence dimension.

    Returns:
        labels: B state label sequences of length T.
        scores: (B,) best path probability (log-probability in log space).
    """
    obs = encode_batch(model, sequences)  # (B, T)

    fn = _decode_log if log_space else _decode_linear
    states, scores = jax.vmap(fn, in_axes=(None, None, None, 0))(
        model.init_probs, model.trans_probs, model.emission, obs
    )
    return [model.decode_states(path) for path in states], scores
