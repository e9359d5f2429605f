"""Project settings from .conductor-deploy.yml plus env overrides."""

import os
from dataclasses import dataclass, field, fields

import yaml

SETTINGS_FILE = ".conductor-deploy.yml"

DEFAULT_COMPONENT_TYPES = [
    "agents",
    "ensembles",
    "prompts",
    "schemas",
    "configs",
    "queries",
    "scripts",
    "templates",
]


@dataclass
class Settings:
    remote: str = "origin"
    keep: int = 10
    history_limit: int = 5
    components_dir: str = "components"
    component_types: list[str] = field(default_factory=lambda: list(DEFAULT_COMPONENT_TYPES))
    logic_dir: str = "src/agents"
    logic_type: str = "agents"
    environments: list[str] = field(default_factory=lambda: ["staging", "production", "main"])


def _as_int(name: str, value) -> int:
    """Whole numbers only: no booleans, no fractional floats."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise ValueError(f"{SETTINGS_FILE}: {name} must be an integer, got {value!r}")


def _coerce(name: str, value, default):
    """Check a settings value against the type of its default."""
    if isinstance(default, int):
        return _as_int(name, value)
    if isinstance(default, list):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{SETTINGS_FILE}: {name} must be a list of strings")
        return list(value)
    if not isinstance(value, str):
        raise ValueError(f"{SETTINGS_FILE}: {name} must be a string, got {value!r}")
    return value


def parse_settings(data: dict | None) -> Settings:
    """Build Settings from a parsed YAML mapping. Unknown keys are ignored."""
    settings = Settings()
    if not data:
        return settings
    if not isinstance(data, dict):
        raise ValueError(f"{SETTINGS_FILE}: expected a mapping at top level")

    for f in fields(Settings):
        if f.name in data:
            setattr(settings, f.name, _coerce(f.name, data[f.name], getattr(settings, f.name)))

    return validate(settings)


def validate(settings: Settings) -> Settings:
    """Range checks, applied after every source is merged."""
    for name in ("keep", "history_limit"):
        if getattr(settings, name) < 0:
            raise ValueError(f"settings: {name} must be >= 0, got {getattr(settings, name)}")
    return settings


def load_settings(root: str) -> Settings:
    """Read settings for a project root.

    Order: defaults → .conductor-deploy.yml → CONDUCTOR_DEPLOY_* env vars.
    """
    path = os.path.join(root, SETTINGS_FILE)
    data = None
    if os.path.isfile(path):
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"{SETTINGS_FILE}: invalid YAML: {e}")

    settings = parse_settings(data)

    env_remote = os.environ.get("CONDUCTOR_DEPLOY_REMOTE")
    if env_remote:
        settings.remote = env_remote
    env_keep = os.environ.get("CONDUCTOR_DEPLOY_KEEP")
    if env_keep:
        settings.keep = _coerce("CONDUCTOR_DEPLOY_KEEP", env_keep, settings.keep)
    return validate(settings)
