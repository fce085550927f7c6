# src/testosim/config.py
"""
Engine defaults.
User-facing settings come from environment variables; physical constants are fixed.
"""

import os

# --- User defaults (CLI / simulate boundary only) ---
DEFAULT_WEIGHT_KG: float = float(os.getenv("TESTOSIM_WEIGHT_KG", "70"))
DEFAULT_CALIBRATION_FACTOR: float = float(os.getenv("TESTOSIM_CALIBRATION_FACTOR", "1.0"))
USE_TWO_COMPARTMENT: bool = os.getenv("TESTOSIM_TWO_COMPARTMENT", "true").lower() == "true"
LOG_LEVEL: str = os.getenv("TESTOSIM_LOG_LEVEL", "WARNING").upper()

# --- Allometric reference ---
REFERENCE_WEIGHT_KG: float = 70.0
VD_REF_L: float = 15.0  # volume of distribution at 70 kg

# --- Two-compartment transfer rates (1/day) ---
K12_PER_DAY: float = 0.3
K21_PER_DAY: float = 0.15

# --- Endogenous production (steady state) ---
ENDOGENOUS_PRODUCTION_MG_PER_DAY: float = 7.0
CLEARANCE_REF_L_PER_DAY: float = 2.4

# --- Fallbacks when a compound has no entry for the chosen route ---
FALLBACK_BIOAVAILABILITY: float = 1.0
FALLBACK_KA_PER_DAY: float = 0.7

# --- Runaway guards ---
MAX_SCHEDULE_STEPS: int = 10_000
MAX_GRID_POINTS: int = 5_000

# --- Simple regimens are displayed over this many days ---
SIMPLE_DISPLAY_DAYS: int = 90

# --- Doses older than this many terminal half-lives before a window are ignored ---
LOOKBACK_HALF_LIVES: float = 10.0
