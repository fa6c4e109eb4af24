"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure src is on the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hmminfer.model import build_model, ice_cream_model  # noqa: E402


@pytest.fixture
def ice_cream():
    """2-state HOT/COLD ice cream model."""
    return ice_cream_model()


@pytest.fixture
def random_model():
    """Factory for random valid models with N states and M symbols."""

    def make(N=3, M=4, seed=0):
        rng = np.random.default_rng(seed)
        states = [f"S{i}" for i in range(N)]
        symbols = [f"o{v}" for v in range(M)]

        trans = np.zeros((N + 1, N + 1))
        trans[:, 1:] = rng.dirichlet(np.ones(N), size=N + 1)
        emission = rng.dirichlet(np.ones(M), size=N)

        return build_model(states, symbols, trans, emission)

    return make
