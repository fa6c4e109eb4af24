"""Forward algorithm using jax.lax.scan.

Linear-domain probabilities by default; the log-space variant replaces the
inner sum with logsumexp and is safe for long sequences that would
otherwise underflow.
"""

import logging
from typing import Sequence

import jax
import jax.numpy as jnp
from jax import lax

from hmminfer.errors import EmptySequence
from hmminfer.hmm.batch import encode_batch
from hmminfer.hmm.trellis import make_trellis
from hmminfer.model import Model
from hmminfer.types import Array, ForwardResult

log = logging.getLogger(__name__)


@jax.jit
def _forward_linear(
    init: Array,
    trans: Array,
    emission: Array,
    obs: Array,
) -> tuple[Array, Array]:
    """Forward pass for one observation sequence.

    Args:
        init: (N,) P(state at t=0 | start).
        trans: (N, N) transitions between emitting states.
        emission: (N, M) emission probabilities.
        obs: (T,) int32 observation indices.

    Returns:
        alpha: (T, N) forward probabilities.
        evidence: scalar P(obs).
    """
    emit = emission[:, obs].T  # (T, N)

    # alpha_0 = P(j | start) * P(o_0 | j)
    alpha_0 = init * emit[0]

    def scan_fn(alpha_prev, emit_t):
        # sum_k alpha_prev[k] * A[k, j], emission factored out of the sum
        alpha_t = emit_t * (alpha_prev @ trans)
        return alpha_t, alpha_t

    _, alphas_rest = lax.scan(scan_fn, alpha_0, emit[1:])
    alpha = jnp.concatenate([alpha_0[None, :], alphas_rest], axis=0)

    return alpha, alpha[-1].sum()


@jax.jit
def _forward_log(
    init: Array,
    trans: Array,
    emission: Array,
    obs: Array,
) -> tuple[Array, Array]:
    """Log-space forward pass; same arguments as _forward_linear.

    Returns:
        log_alpha: (T, N) forward log-probabilities.
        log_evidence: scalar log P(obs).
    """
    log_trans = jnp.log(trans)
    log_emit = jnp.log(emission[:, obs].T)  # (T, N)

    log_alpha_0 = jnp.log(init) + log_emit[0]

    def scan_fn(log_alpha_prev, log_emit_t):
        log_alpha_t = (
            jax.nn.logsumexp(log_alpha_prev[:, None] + log_trans, axis=0)
            + log_emit_t
        )
        return log_alpha_t, log_alpha_t

    _, log_alphas_rest = lax.scan(scan_fn, log_alpha_0, log_emit[1:])
    log_alpha = jnp.concatenate([log_alpha_0[None, :], log_alphas_rest], axis=0)

    return log_alpha, jax.nn.logsumexp(log_alpha[-1])


def forward_trellis(
    model: Model,
    observations: Sequence[str],
    log_space: bool = False,
) -> ForwardResult:
    """Run the forward algorithm and keep the alpha trellis.

    Args:
        model: HMM to evaluate under.
        observations: (T,) observation symbols, T >= 1.
        log_space: Compute in log space; value is then log P(O).

    Returns:
        ForwardResult with P(O) (or log P(O)) and the (N, T) alpha trellis.
    """
    if len(observations) == 0:
        raise EmptySequence()
    obs = model.encode_observations(observations)

    fn = _forward_log if log_space else _forward_linear
    alpha, value = fn(model.init_probs, model.trans_probs, model.emission, obs)

    log.debug(f"forward: T={len(observations)} log_space={log_space} value={float(value):.6g}")
    return ForwardResult(value=float(value), trellis=make_trellis(alpha, log_space=log_space))


def forward(model: Model, observations: Sequence[str]) -> float:
    """Total probability P(O) of an observation sequence."""
    return forward_trellis(model, observations).value


def forward_log(model: Model, observations: Sequence[str]) -> float:
    """log P(O), computed entirely in log space."""
    return forward_trellis(model, observations, log_space=True).value


def forward_batch(
    model: Model,
    sequences: Sequence[Sequence[str]],
    log_space: bool = False,
) -> Array:
    """Forward algorithm over equal-length sequences.

    Uses jax.vmap over the sequence dimension.

    Args:
        model: HMM to evaluate under.
        sequences: B observation sequences of common length T >= 1.
        log_space: Return log P(O) instead of P(O).

    Returns:
        (B,) P(O) (or log P(O)) per sequence.
    """
    obs = encode_batch(model, sequences)  # (B, T)

    fn = _forward_log if log_space else _forward_linear
    _, values = jax.vmap(fn, in_axes=(None, None, None, 0))(
        model.init_probs, model.trans_probs, model.emission, obs
    )
    return values
