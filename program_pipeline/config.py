"""
Configuration loading for the weekly program pipeline.
"""

import copy
import os

import yaml

from program_pipeline.errors import ConfigurationError


DEFAULT_CONFIG = {
    "claude": {
        "model": "claude-sonnet-4-5",
        "max_tokens": 4096,
        "timeout": 120,
        "api_key_env": "ANTHROPIC_API_KEY",
    },
    "database": {
        "path": "data/programs.db",
    },
    "cache": {
        "ttl_hours": 24,
    },
    "harmonizer": {
        "minutes_per_set": 2.0,
        "max_sets_per_exercise": 5,
        "default_session_minutes": 60,
        "muscle_map_file": None,
    },
    "weights": {
        "unit": "kg",
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base, overrides):
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path):
    """Load config.yaml and merge it over the defaults."""
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse {config_path}: {exc}") from exc

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    config = _deep_merge(DEFAULT_CONFIG, loaded)

    ttl_hours = config["cache"].get("ttl_hours")
    if not isinstance(ttl_hours, (int, float)) or isinstance(ttl_hours, bool) or ttl_hours <= 0:
        raise ConfigurationError(f"cache.ttl_hours must be a positive number, got {ttl_hours!r}")

    # Relative file paths resolve against the config file's directory.
    base_dir = os.path.dirname(os.path.abspath(config_path))
    for section, key in (("database", "path"), ("harmonizer", "muscle_map_file")):
        value = config[section].get(key)
        if value and not os.path.isabs(value):
            config[section][key] = os.path.join(base_dir, value)

    return config


def cache_ttl_seconds(config):
    return int(float(config["cache"]["ttl_hours"]) * 3600)
