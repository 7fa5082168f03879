import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "trigger": "/articlecheck",
    "guidelines": None,  # None = use built-in default; set to a path string to override
    "document_extensions": [".md"],  # changed files with these suffixes are checked
    "max_content_chars": 100_000,
    "rate_limit_max_requests": 100,
    "rate_limit_window": 3600,  # seconds
    "content_fetch_timeout": 30,
    "analysis_timeout": 120,
    "search_timeout": 15,
    "client_ip_header": "x-forwarded-for",
    "store": "sqlite",  # sqlite | memory | none
    "store_path": ".articlecheck.db",
}

BUILTIN_GUIDELINES_DIR = Path(__file__).parent / "guidelines"
_BUILTIN_DEFAULT = BUILTIN_GUIDELINES_DIR / "article.md"

# config key -> environment variable
_SECRET_ENV_VARS = {
    "github_token": "GITHUB_TOKEN",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "brave_search_api_key": "BRAVE_SEARCH_API_KEY",
    "github_webhook_secret": "GITHUB_WEBHOOK_SECRET",
}

_MODEL_KEYS = {"anthropic": "anthropic_api_key", "openai": "openai_api_key"}


def load_config(config_path: str = ".articlecheck.yml", overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .articlecheck.yml in the current directory
      3. Explicit overrides (CLI options)
    """
    config = {**DEFAULT_CONFIG, "document_extensions": list(DEFAULT_CONFIG["document_extensions"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config[key] = value

    for key, env_var in _SECRET_ENV_VARS.items():
        config[key] = os.environ.get(env_var)

    return config


def required_secrets(config: dict) -> list[str]:
    """Return the config keys that must be set for the configured model."""
    model_key = _MODEL_KEYS.get(config.get("model", "anthropic"), "anthropic_api_key")
    return ["github_token", model_key, "brave_search_api_key", "github_webhook_secret"]


def missing_secrets(config: dict) -> list[str]:
    """Return environment variable names of required secrets that are empty."""
    return [_SECRET_ENV_VARS[key] for key in required_secrets(config) if not config.get(key)]


def load_guidelines(config: dict) -> str:
    """
    Load the article review guidelines sent to the analysis model.

    If ``guidelines`` is set in config, loads from that path (relative to cwd).
    Otherwise falls back to the built-in default.
    """
    custom_path = config.get("guidelines")
    if custom_path:
        p = Path(custom_path)
        if not p.exists():
            raise FileNotFoundError(f"Guidelines file not found: {custom_path}")
        return p.read_text()

    if _BUILTIN_DEFAULT.exists():
        return _BUILTIN_DEFAULT.read_text()

    raise FileNotFoundError("No guidelines configured and built-in default is missing.")
