# src/testosim/validation.py
# Small input validators shared by the data model and the dose builders.

def validate_positive(name: str, x: float) -> None:
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")


def validate_non_negative(name: str, x: float) -> None:
    if not (x >= 0):
        raise ValueError(f"{name} must be >= 0 (got {x}).")


def validate_fraction(name: str, x: float) -> None:
    if not (0.0 <= x <= 1.0):
        raise ValueError(f"{name} must be within [0, 1] (got {x}).")


def validate_non_negative_int(name: str, x: int) -> None:
    if not (isinstance(x, int) and x >= 0):
        raise ValueError(f"{name} must be a non-negative integer (got {x}).")
