"""Reading and writing model tables (JSON or .npz)."""

import json
import logging
import zipfile
from pathlib import Path

import numpy as np

from hmminfer.config import ValidationConfig
from hmminfer.errors import InvalidModel
from hmminfer.model import Model, build_model

log = logging.getLogger(__name__)

REQUIRED_KEYS = ("states", "observations", "transition", "emission")


def _load_json(path: Path) -> dict:
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidModel(f"Malformed model file {path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidModel(f"Model file {path} must hold a JSON object")
    for key in ("states", "observations"):
        if key in data and not isinstance(data[key], list):
            raise InvalidModel(f"Model file {path}: {key!r} must be a list")
    return data


def _load_npz(path: Path) -> dict:
    try:
        data = np.load(path)
    except (ValueError, EOFError, zipfile.BadZipFile) as e:
        raise InvalidModel(f"Malformed model file {path}: {e}") from e
    if isinstance(data, np.ndarray):
        raise InvalidModel(f"Model file {path} holds a single array, not an archive")

    with data:
        return {
            "states": [str(s) for s in data["states"]] if "states" in data else None,
            "observations": (
                [str(o) for o in data["observations"]] if "observations" in data else None
            ),
            "transition": data["transition"] if "transition" in data else None,
            "emission": data["emission"] if "emission" in data else None,
        }


def load_model(path: Path, validation: ValidationConfig | None = None) -> Model:
    """Load a model from a .json or .npz file.

    JSON layout:
        {"states": [...], "observations": [...],
         "transition": [[...], ...],   # (N+1) x (N+1), row 0 = from start
         "emission": [[...], ...]}     # N x M, or {label: [...]}
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = _load_json(path)
    elif suffix == ".npz":
        data = _load_npz(path)
    else:
        raise InvalidModel(f"Unsupported model file type: {path.suffix!r}")

    missing = [k for k in REQUIRED_KEYS if data.get(k) is None]
    if missing:
        raise InvalidModel(f"Model file {path} is missing {missing}")

    model = build_model(
        data["states"], data["observations"], data["transition"], data["emission"],
        validation=validation,
    )
    log.info(f"Loaded {model.num_states()}-state model from {path}")
    return model


def save_model(model: Model, path: Path) -> None:
    """Save a model as .json or .npz, chosen by suffix."""
    path = Path(path)
    suffix = path.suffix.lower()
    transition = np.asarray(model.transition)
    emission = np.asarray(model.emission)

    if suffix == ".json":
        payload = {
            "states": list(model.states),
            "observations": list(model.observations),
            "transition": transition.tolist(),
            "emission": emission.tolist(),
        }
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
    elif suffix == ".npz":
        np.savez(
            path,
            states=np.array(model.states),
            observations=np.array(model.observations),
            transition=transition,
            emission=emission,
        )
    else:
        raise InvalidModel(f"Unsupported model file type: {path.suffix!r}")

    log.info(f"Saved model to {path}")
