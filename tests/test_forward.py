"""Tests for the forward algorithm."""

import itertools

import numpy as np
import pytest

from hmminfer.errors import EmptySequence, LengthMismatch, UnknownSymbol
from hmminfer.hmm.forward import forward, forward_batch, forward_log, forward_trellis
from hmminfer.hmm.likelihood import joint_likelihood
from hmminfer.model import build_model


def _numpy_forward(model, observations):
    """Reference float64 forward pass with explicit loops."""
    trans = np.asarray(model.transition, dtype=np.float64)
    emit = np.asarray(model.emission, dtype=np.float64)
    obs = [model.observation_index(o) for o in observations]
    N, T = model.num_states(), len(obs)

    alpha = np.zeros((N, T))
    for j in range(N):
        alpha[j, 0] = trans[0, j + 1] * emit[j, obs[0]]
    for t in range(1, T):
        for j in range(N):
            alpha[j, t] = emit[j, obs[t]] * sum(
                trans[k + 1, j + 1] * alpha[k, t - 1] for k in range(N)
            )
    return alpha, alpha[:, -1].sum()


class TestForward:
    def test_ice_cream_single_observation(self, ice_cream):
        """P(3) = 0.8*0.4 + 0.2*0.1."""
        assert forward(ice_cream, ["3"]) == pytest.approx(0.8 * 0.4 + 0.2 * 0.1, rel=1e-14, abs=0)

    def test_moderate_length_stays_nonzero(self, ice_cream):
        """T=120 is far from float64 underflow in linear mode."""
        p = forward(ice_cream, ["3", "1", "2"] * 40)
        assert p > 0.0
        assert np.log(p) == pytest.approx(forward_log(ice_cream, ["3", "1", "2"] * 40), rel=1e-10)

    def test_single_observation_is_start_weighted_emission(self, random_model):
        model = random_model(N=4, M=3, seed=7)
        expected = sum(
            model.transition_prob(0, j + 1) * model.emission_prob(j, 2)
            for j in range(model.num_states())
        )
        assert forward(model, ["o2"]) == pytest.approx(expected, rel=1e-5)

    def test_matches_numpy_reference(self, random_model):
        model = random_model(N=3, M=4, seed=1)
        obs = ["o0", "o3", "o1", "o1", "o2", "o0", "o3"]
        alpha_np, p_np = _numpy_forward(model, obs)

        result = forward_trellis(model, obs)
        assert result.trellis.scores.shape == (3, 7)
        assert result.trellis.backpointers is None
        np.testing.assert_allclose(np.asarray(result.trellis.scores), alpha_np, rtol=1e-5)
        assert result.value == pytest.approx(p_np, rel=1e-5)

    def test_equals_sum_of_joint_probabilities(self, ice_cream):
        """Forward marginalises the joint over every hidden path."""
        obs = ["3", "1", "3"]
        total = sum(
            joint_likelihood(ice_cream, list(path), obs)
            for path in itertools.product(ice_cream.states, repeat=len(obs))
        )
        assert forward(ice_cream, obs) == pytest.approx(total, rel=1e-5)

    def test_empty_sequence(self, ice_cream):
        with pytest.raises(EmptySequence):
            forward(ice_cream, [])

    def test_unknown_symbol(self, ice_cream):
        with pytest.raises(UnknownSymbol):
            forward(ice_cream, ["9"])


class TestForwardLog:
    def test_matches_linear(self, random_model):
        model = random_model(N=3, M=4, seed=2)
        obs = ["o1", "o2", "o3", "o0", "o0"]
        assert forward_log(model, obs) == pytest.approx(np.log(forward(model, obs)), rel=1e-5)

    def test_trellis_flagged_log_space(self, ice_cream):
        result = forward_trellis(ice_cream, ["1", "2"], log_space=True)
        assert result.trellis.log_space

    def test_long_sequence_does_not_underflow(self, ice_cream):
        """Linear probabilities underflow to 0; log space stays finite."""
        obs = ["3", "1", "2"] * 400
        assert forward(ice_cream, obs) == 0.0
        assert np.isfinite(forward_log(ice_cream, obs))

    def test_zero_probability_gives_negative_infinity(self):
        model = build_model(
            ["A", "B"], ["x", "y"],
            [[0.0, 1.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
            [[1.0, 0.0], [0.5, 0.5]],
        )
        assert forward(model, ["y"]) == 0.0
        assert forward_log(model, ["y"]) == -np.inf


class TestForwardBatch:
    def test_matches_single(self, ice_cream):
        batch = [["3", "1", "3"], ["1", "1", "2"], ["2", "3", "3"]]
        values = forward_batch(ice_cream, batch)
        assert values.shape == (3,)
        for seq, v in zip(batch, np.asarray(values)):
            assert v == pytest.approx(forward(ice_cream, seq), rel=1e-5)

    def test_log_space(self, ice_cream):
        batch = [["3", "1"], ["1", "1"]]
        values = np.asarray(forward_batch(ice_cream, batch, log_space=True))
        np.testing.assert_allclose(
            values, [forward_log(ice_cream, s) for s in batch], rtol=1e-5
        )

    def test_ragged_batch(self, ice_cream):
        with pytest.raises(LengthMismatch):
            forward_batch(ice_cream, [["3", "1"], ["1"]])

    def test_empty_batch(self, ice_cream):
        with pytest.raises(EmptySequence):
            forward_batch(ice_cream, [])

    def test_empty_sequences(self, ice_cream):
        with pytest.raises(EmptySequence):
            forward_batch(ice_cream, [[], []])
