"""Configuration dataclasses and default model tables for hmminfer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationConfig:
    """Model validation configuration."""
    validate: bool = True
    atol: float = 1e-6  # Tolerance for rows summing to 1


# Ice cream example (Eisner): hidden weather, observed number of ice creams eaten.
ICE_CREAM_STATES = ("HOT", "COLD")
ICE_CREAM_OBSERVATIONS = ("1", "2", "3")

# Row 0 is the start pseudo-state; column 0 (transition into start) is unused.
ICE_CREAM_TRANS = [
    [0.0, 0.8, 0.2],  # START
    [0.0, 0.7, 0.3],  # HOT
    [0.0, 0.4, 0.6],  # COLD
]

ICE_CREAM_EMISSION = [
    [0.2, 0.4, 0.4],  # HOT
    [0.5, 0.4, 0.1],  # COLD
]

# Observation sequences decoded by `hmminfer example`
ICE_CREAM_SEQUENCES = (
    ("3", "3", "1", "1", "2", "2", "3", "1", "3"),
    ("3", "3", "1", "1", "2", "3", "3", "1", "2"),
)
