import os
from pathlib import Path


BASE_DIR = Path(__file__).parent

DATA_DIR = Path(os.environ.get("RELIEFOPT_DATA_DIR", BASE_DIR / "database"))
NETWORK_PATH = DATA_DIR / "network.json"
DEMAND_PATH = DATA_DIR / "demand.json"
RISK_FACTORS_PATH = DATA_DIR / "risk_factors.json"

LOG_LEVEL = os.environ.get("RELIEFOPT_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_HORIZON_MONTHS = int(os.environ.get("RELIEFOPT_DEFAULT_HORIZON_MONTHS", "3"))
UNITS_PER_PERSON = float(os.environ.get("RELIEFOPT_UNITS_PER_PERSON", "1.0"))
STRATEGY = os.environ.get("RELIEFOPT_STRATEGY", "greedy")

# Remote demand oracle; the static table is used when unset
ORACLE_URL = os.environ.get("RELIEFOPT_ORACLE_URL")
ORACLE_TIMEOUT = float(os.environ.get("RELIEFOPT_ORACLE_TIMEOUT", "5"))

SENTINEL_VERSION = "TFT-v2.4"
COMMANDER_VERSION = "MILP-v1.2"
RISK_MODEL_VERSION = "risk-v1.8"

# Travel edges implying a faster straight-line speed are logged at load time
MAX_PLAUSIBLE_SPEED_KMPH = float(os.environ.get("RELIEFOPT_MAX_PLAUSIBLE_SPEED_KMPH", "120"))
