"""CLI entry point for hmminfer."""

import functools
import logging
from pathlib import Path

import click

from hmminfer.errors import HMMError


def _split(seq: str) -> list[str]:
    """Split a "3 1 3" or "3,1,3" sequence argument into symbols."""
    return seq.replace(",", " ").split()


def _load(model_file):
    from hmminfer.model import ice_cream_model
    from hmminfer.io.model_file import load_model

    if model_file is None:
        return ice_cream_model()
    return load_model(Path(model_file))


def _reports_errors(fn):
    """Turn HMMError into a one-line click error (exit status 1)."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except HMMError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


model_option = click.option(
    "--model", "model_file", type=click.Path(exists=True), default=None,
    help="Model file (.json or .npz). Default: built-in ice cream model.",
)
log_space_option = click.option(
    "--log-space", is_flag=True, help="Compute in log space (prints log-probability).",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose):
    """hmminfer: HMM likelihood, forward and Viterbi inference."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@main.command()
@model_option
@click.option("--states", required=True, help='State labels, e.g. "HOT HOT COLD".')
@click.option("--obs", required=True, help='Observation symbols, e.g. "3 1 3".')
@click.option("--joint", is_flag=True, help="Include transition probabilities, P(O, Q).")
@_reports_errors
def likelihood(model_file, states, obs, joint):
    """Likelihood of an observation sequence given a state sequence."""
    from hmminfer.hmm.likelihood import likelihood as emission_likelihood
    from hmminfer.hmm.likelihood import joint_likelihood

    model = _load(model_file)
    fn = joint_likelihood if joint else emission_likelihood
    click.echo(f"{fn(model, _split(states), _split(obs)):.10g}")


@main.command()
@model_option
@click.option("--obs", required=True, help='Observation symbols, e.g. "3 1 3".')
@log_space_option
@_reports_errors
def forward(model_file, obs, log_space):
    """Total probability of an observation sequence."""
    from hmminfer.hmm.forward import forward_trellis

    result = forward_trellis(_load(model_file), _split(obs), log_space=log_space)
    click.echo(f"{result.value:.10g}")


@main.command()
@model_option
@click.option("--obs", required=True, help='Observation symbols, e.g. "3 1 3".')
@log_space_option
@click.option("--score", is_flag=True, help="Also print the best path score.")
@_reports_errors
def viterbi(model_file, obs, log_space, score):
    """Most likely hidden state sequence."""
    from hmminfer.hmm.viterbi import viterbi_decode

    result = viterbi_decode(_load(model_file), _split(obs), log_space=log_space)
    click.echo(" ".join(result.labels))
    if score:
        click.echo(f"{result.score:.10g}")


@main.command()
@model_option
@_reports_errors
def inspect_model(model_file):
    """Print the model's states, symbols and probability tables."""
    import numpy as np

    model = _load(model_file)
    labels = ("START",) + model.states

    click.echo("=== Model ===\n")
    click.echo(f"States:       {' '.join(model.states)}")
    click.echo(f"Observations: {' '.join(model.observations)}")

    click.echo("\nTransition matrix (row = from, column = to):")
    trans = np.asarray(model.transition)
    click.echo("  " + " ".join(f"{s:>8}" for s in labels[1:]))
    for i, row in enumerate(trans):
        click.echo(f"  {labels[i]:<8}" + " ".join(f"{p:8.4f}" for p in row[1:]))

    click.echo("\nEmission probabilities:")
    emit = np.asarray(model.emission)
    click.echo("  " + " ".join(f"{o:>8}" for o in model.observations))
    for j, row in enumerate(emit):
        click.echo(f"  {model.states[j]:<8}" + " ".join(f"{p:8.4f}" for p in row))


@main.command()
def example():
    """Decode the built-in ice cream sequences."""
    from hmminfer.config import ICE_CREAM_SEQUENCES
    from hmminfer.hmm.viterbi import viterbi as decode
    from hmminfer.model import ice_cream_model

    model = ice_cream_model()
    for seq in ICE_CREAM_SEQUENCES:
        click.echo(f"{' '.join(seq)} -> {' '.join(decode(model, seq))}")


if __name__ == "__main__":
    main()
