"""Encoding of equal-length observation batches for the vmapped engines."""

from typing import Sequence

import jax.numpy as jnp

from hmminfer.errors import EmptySequence, LengthMismatch
from hmminfer.model import Model
from hmminfer.types import Array


def encode_batch(model: Model, sequences: Sequence[Sequence[str]]) -> Array:
    """Encode B observation sequences of common length T.

    Returns:
        (B, T) int32 observation indices.
    """
    if len(sequences) == 0:
        raise EmptySequence("batch")

    T = len(sequences[0])
    if T == 0:
        raise EmptySequence()
    for seq in sequences[1:]:
        if len(seq) != T:
            raise LengthMismatch(T, len(seq), what="batch sequence")

    return jnp.stack([model.encode_observations(seq) for seq in sequences])
