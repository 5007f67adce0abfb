import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "data" / "compare.json"
CONFIG_FILE_PATH = os.getenv("RACE_COMPARE_CONFIG", str(DEFAULT_CONFIG_PATH))

DEFAULT_SAMPLES = 500
DEFAULT_SEED = 2615953739
DEFAULT_BODY_LENGTH = 2.5
DEFAULT_MAX_RACE_TIME = 600.0


def load_config(path=None):
    """
    Loads the comparison config file.
    """
    path = path or CONFIG_FILE_PATH
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        return config
    except FileNotFoundError:
        print(f"FATAL ERROR: Could not find config file at {path}")
        return None
    except Exception as e:
        print(f"FATAL ERROR: Could not parse config file {path}: {e}")
        return None

# Load the config ONCE when the module is first imported
BALANCE_CONFIG = load_config()

def get_config(key_path, default=None):
    """
    Safely gets a value from the loaded config using a 'dot.path'.
    Example: get_config('comparison.default_samples')
    """
    if not BALANCE_CONFIG:
        return default

    try:
        keys = key_path.split('.')
        value = BALANCE_CONFIG
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        print(f"Warning: Could not find config key: {key_path}")
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    env_value = os.getenv(name)
    if env_value is None:
        return default
    return env_value.lower() in ("1", "true", "yes", "on")


def global_ruleset_enabled() -> bool:
    return _env_flag("RACE_COMPARE_GLOBAL", bool(get_config("comparison.global_ruleset", False)))


def position_keep_disabled() -> bool:
    return _env_flag("RACE_COMPARE_DISABLE_POSITION_KEEP")


def body_length() -> float:
    return float(get_config("comparison.body_length", DEFAULT_BODY_LENGTH))


def max_race_time() -> float:
    return float(get_config("comparison.max_race_time", DEFAULT_MAX_RACE_TIME))


@dataclass(frozen=True)
class CompareOptions:
    """Per-run switches shared by both simulation streams."""

    seed: int = DEFAULT_SEED
    use_pos_keep: bool = True
    use_int_checks: bool = False
    global_ruleset: bool = False

    @classmethod
    def from_config(cls, **overrides) -> "CompareOptions":
        values = {
            "seed": int(get_config("comparison.default_seed", DEFAULT_SEED)),
            "use_pos_keep": bool(get_config("comparison.use_pos_keep", True)) and not position_keep_disabled(),
            "use_int_checks": bool(get_config("comparison.use_int_checks", False)),
            "global_ruleset": global_ruleset_enabled(),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
