"""
Configuration loader

Settings come from a YAML file (config/settings.yaml by default, or the path
in ASSESSMENT_CONFIG), then environment variables override individual keys.
"""
import logging
import os
import yaml
from pathlib import Path
from pydantic import BaseModel
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


class SmtpSettings(BaseModel):
    """Outbound mail server"""
    host: Optional[str] = None
    port: int = 587
    use_ssl: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    sender: str = "team-assessments@example.com"
    timeout: int = 30


class Settings(BaseModel):
    """Runtime settings for the assessment server"""
    data_dir: str = "data"
    storage: str = "file"  # "file" | "memory"
    port: int = 3000
    public_base_url: str = "http://localhost:3000"
    static_dir: str = "static"
    max_upload_bytes: int = 5 * 1024 * 1024

    # Reject malformed ratings instead of silently recording them as 1
    strict_ratings: bool = True

    notify_on_submit: bool = True
    notification_workers: int = 4
    notification_max_pending: int = 100

    smtp: SmtpSettings = SmtpSettings()
    program_team_emails: List[str] = []

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp.host and self.smtp.username and self.smtp.password)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _split_emails(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


# env var -> (section, key, converter); section None means top level
ENV_OVERRIDES = {
    "DATA_DIR": (None, "data_dir", str),
    "STORAGE": (None, "storage", str),
    "PORT": (None, "port", int),
    "PUBLIC_BASE_URL": (None, "public_base_url", str),
    "STRICT_RATINGS": (None, "strict_ratings", _as_bool),
    "NOTIFY_ON_SUBMIT": (None, "notify_on_submit", _as_bool),
    "NOTIFICATION_WORKERS": (None, "notification_workers", int),
    "NOTIFICATION_MAX_PENDING": (None, "notification_max_pending", int),
    "PROGRAM_TEAM_EMAILS": (None, "program_team_emails", _split_emails),
    "SMTP_HOST": ("smtp", "host", str),
    "SMTP_PORT": ("smtp", "port", int),
    "SMTP_USE_SSL": ("smtp", "use_ssl", _as_bool),
    "EMAIL_USER": ("smtp", "username", str),
    "EMAIL_PASS": ("smtp", "password", str),
    "EMAIL_FROM": ("smtp", "sender", str),
}


def apply_env_overrides(data: Dict, environ: Optional[Dict[str, str]] = None) -> Dict:
    """
    Overlay environment variables onto raw config data

    Args:
        data: Raw config mapping (as loaded from YAML)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The updated mapping
    """
    environ = os.environ if environ is None else environ

    for env_name, (section, key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        target = data if section is None else data.setdefault(section, {})
        target[key] = convert(raw)

    return data


def load_settings(config_path: Optional[str] = None,
                  environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Load settings from YAML file plus environment overrides

    A missing file is not an error: defaults apply.

    Args:
        config_path: Path to config file (defaults to ASSESSMENT_CONFIG or config/settings.yaml)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Settings object
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get("ASSESSMENT_CONFIG") or DEFAULT_CONFIG_PATH)

    data: Dict = {}
    if path.exists():
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded settings from {path}")
    else:
        logger.info(f"Config file {path} not found, using defaults")

    return Settings(**apply_env_overrides(data, env))
