import os
import yaml
import argparse
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(os.getenv("GRADCATALOG_CONFIG", "gradcatalog_config.yaml"))

DEFAULTS = {
    "device": "cpu",
    "promotion": True,
    "compute_dtype": "float32",
    "log_level": "WARNING",
}

def load_yaml_config(path: str = None) -> dict:
    """Load configuration from a YAML file."""
    cfg_path = Path(path or os.getenv("GRADCATALOG_CONFIG", DEFAULT_CONFIG_PATH))
    if not cfg_path.exists():
        logger.debug("No config found at %s. Using defaults.", cfg_path)
        return {}
    with open(cfg_path, "r") as f:
        return yaml.safe_load(f) or {}

def parse_cli_args(argv=None) -> dict:
    """Parse CLI overrides (used for runtime config tweaking)."""
    parser = argparse.ArgumentParser(description="GradCatalog Config Override", add_help=False,
                                     allow_abbrev=False, exit_on_error=False)

    parser.add_argument("--gc-config", dest="config", type=str, help="Path to YAML config file")
    parser.add_argument("--gc-device", dest="device", type=str, choices=["cpu", "gpu"], help="Array backend to use")
    parser.add_argument("--gc-promotion", dest="promotion", type=str, choices=["true", "false"],
                        help="Promote narrow floats before computing gradients")
    parser.add_argument("--gc-compute-dtype", dest="compute_dtype", type=str, choices=["float32", "float64"],
                        help="Wide float type used for promoted rules")
    parser.add_argument("--gc-log-level", dest="log_level", type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="GradCatalog logger level")

    try:
        args, _ = parser.parse_known_args(argv)
    except (argparse.ArgumentError, SystemExit) as exc:
        logger.warning("Ignoring invalid GradCatalog command-line overrides: %s", exc)
        return {}

    cli_config = {}
    for key, value in vars(args).items():
        if value is not None:
            # Cast booleans properly
            if value == "true":
                value = True
            elif value == "false":
                value = False
            cli_config[key] = value

    return cli_config

def merge_configs(base: dict, override: dict) -> dict:
    """Merge CLI overrides into YAML base config (CLI wins)."""
    final = base.copy()
    final.update(override)
    return final

def load_config(argv=None) -> dict:
    """Main config loader: defaults + YAML + CLI overrides."""
    cli = parse_cli_args(argv)
    yaml_cfg = load_yaml_config(cli.get("config"))
    return merge_configs(merge_configs(DEFAULTS, yaml_cfg), cli)

# === The global CONFIG dict you import elsewhere ===
CONFIG = load_config()
