import copy
import json
from tm.common.logger import log
from tm.common.setup import PATHS
from tm.core.standard_time import Allowances
from tm.util import now_iso


_SCHEMA_VERSION = 1

#region === Helpers and Paths ===

SETTINGS_PATH = PATHS.config / "settings.json"

# Default engine settings. Durations are in seconds, allowances in percent.
_SETTINGS_DEFAULTS = {
    "fps": 30,
    "allowances": {"personal": 5, "fatigue": 4, "delay": 2},
    "auto_append": True,
    "min_drag_duration": 0.1,
    "auto_append_min_duration": 0.5,
    "mark_end_min_duration": 0.01,
    "breakdown_tolerance": 0.01,
    "under_allocation_tolerance": 0.05,
    "short_duration_warning": 0.1,
    "long_duration_warning": 60,
    "history_limit": 50,
}
# Helper to return a truly fresh, default settings dict.
def build_default_settings():
    settings = copy.deepcopy(_SETTINGS_DEFAULTS)
    settings["meta"] = {"schema_version": _SCHEMA_VERSION, "saved_at": now_iso()}
    return settings

#endregion === Helpers and Paths ===

#region === Saving and Loading Settings ===

# Loads settings from PATHS.config / settings.json, filling in any missing or mistyped keys with defaults.
def load_settings(path=None):
    path = path or SETTINGS_PATH
    try:
        if not path.exists():
            log.info(f"No settings file at '{path}', using default settings.")
            return build_default_settings()

        with open(path, "r", encoding="utf-8") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise TypeError("settings.json must hold a JSON object")
        defaulted_values = set()

        if "meta" not in settings or not isinstance(settings["meta"], dict):
            defaulted_values.add("meta")
            settings["meta"] = {"schema_version": _SCHEMA_VERSION}

        for key, default in _SETTINGS_DEFAULTS.items():
            if key not in settings:
                defaulted_values.add(key)
                settings[key] = copy.deepcopy(default)
            # Numbers stay numbers (bools aren't numbers here), dicts stay dicts.
            elif isinstance(default, bool) and not isinstance(settings[key], bool):
                defaulted_values.add(key)
                settings[key] = default
            elif (isinstance(default, (int, float)) and not isinstance(default, bool)
                  and (isinstance(settings[key], bool) or not isinstance(settings[key], (int, float)))):
                defaulted_values.add(key)
                settings[key] = default
            elif isinstance(default, dict):
                if not isinstance(settings[key], dict):
                    defaulted_values.add(key)
                    settings[key] = copy.deepcopy(default)
                else:
                    for sub_key, sub_default in default.items():
                        if sub_key not in settings[key]:
                            defaulted_values.add(f"{key}.{sub_key}")
                            settings[key][sub_key] = sub_default

        # Log results
        if defaulted_values:
            log.warning(f"Loaded settings from '{path}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{path}'.")
        return settings
    # Fall back to defaults in case of error, but warn in log
    except (json.JSONDecodeError, OSError, TypeError):
        log.warning(f"Ran into an error while trying to load '{path}', falling back to default settings.",exc_info=True)
        return build_default_settings()

# Write the given settings to disk.
def save_settings(settings, path=None):
    path = path or SETTINGS_PATH
    settings.setdefault("meta", {"schema_version": _SCHEMA_VERSION})
    settings["meta"]["saved_at"] = now_iso()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
    log.info(f"Successfully saved settings to '{path}'")

def allowances_from_settings(settings):
    return Allowances.from_dict(settings.get("allowances", {}))

# Store the analyst's allowance percentages back into a settings dict.
def set_allowances(settings, allowances):
    settings["allowances"] = allowances.to_dict()
    return settings

#endregion === Saving and Loading Settings ===
