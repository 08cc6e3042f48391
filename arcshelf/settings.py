import copy
import os
import logging

import yaml

from arcshelf.constants import CONFIG_FILE, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def load_settings(force=False, config_file=None):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    config_file = config_file or CONFIG_FILE

    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}

        # Deep merge with defaults to ensure new keys are present
        merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
        for section, values in settings.items():
            if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
                merged_settings[section].update(values)
            else:
                merged_settings[section] = values
        settings = merged_settings

    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        os.makedirs(os.path.dirname(config_file), exist_ok=True)
        with open(config_file, "w") as yaml_file:
            yaml.dump(settings, yaml_file)
        logger.info(f"Default configuration written to {config_file}")

    _cached_settings = settings
    return settings


def verify_settings(section, data):
    success = True
    errors = []
    if section == "library":
        backup_keep = data.get("backup_keep")
        if backup_keep is not None and (not isinstance(backup_keep, int) or backup_keep < 1):
            success = False
            errors.append({"path": "library/backup_keep", "error": "Must be a positive integer."})
        data_dir = data.get("data_dir")
        if data_dir is not None and (not isinstance(data_dir, str) or not data_dir.strip()):
            success = False
            errors.append({"path": "library/data_dir", "error": "Must be a non-empty path."})
    elif section == "deployment":
        level = data.get("compression_level")
        if level is not None and (not isinstance(level, int) or not 0 <= level <= 9):
            success = False
            errors.append({"path": "deployment/compression_level", "error": "Must be an integer between 0 and 9."})
    return success, errors


def set_library_settings(data, config_file=None):
    success, errors = verify_settings("library", data)
    if not success:
        return success, errors
    config_file = config_file or CONFIG_FILE
    settings = load_settings(force=True, config_file=config_file)
    settings["library"].update(data)
    with open(config_file, "w") as yaml_file:
        yaml.dump(settings, yaml_file)
    reload_conf(config_file=config_file)
    return success, errors


def get_data_dir(settings=None):
    settings = settings or load_settings()
    return settings["library"]["data_dir"]


def reload_conf(config_file=None):
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True, config_file=config_file)
