import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml
from colorama import Fore, Style

logger = logging.getLogger("tronsign.config")

DEFAULT_CONFIG_FILE = "tronsign.yaml"
ENV_PREFIX = "TRONSIGN_"

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 6.0; Nexus 5 Build/MRA58N) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/141.0.0.0 Mobile Safari/537.36 Edg/141.0.0.0"
)


@dataclass
class Settings:
    base_url: str = "http://lms.tc.cqupt.edu.cn"
    # Per-call bound so one unresponsive backend cannot stall a batch
    timeout_sec: float = 10.0
    batch_size: int = 500
    max_workers: int = 32
    probe_workers: int = 64
    user_agent: str = MOBILE_USER_AGENT
    audit_log: str = "tronsign_audit.jsonl"
    roster: str = "roster.yaml"
    verbose: bool = False

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        if not self.base_url.startswith("http"):
            self.base_url = "https://" + self.base_url
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.timeout_sec <= 0:
            raise ValueError("timeout_sec must be > 0")


def _coerce(value: str, target: Any) -> Any:
    if isinstance(target, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(target, int):
        return int(value)
    if isinstance(target, float):
        return float(value)
    return value.strip()


def _env_overrides(defaults: Settings) -> Dict[str, Any]:
    out = {}
    for f in fields(Settings):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is None or raw.strip() == "":
            continue
        out[f.name] = _coerce(raw, getattr(defaults, f.name))
    return out


def load_settings(path: Optional[str] = None, **overrides) -> Settings:
    """
    Build Settings from (lowest to highest precedence): defaults, YAML file,
    TRONSIGN_* environment variables, explicit keyword overrides.
    A missing file is fine when no path was given explicitly.
    """
    settings = Settings()
    file_path = path or os.environ.get(ENV_PREFIX + "CONFIG") or DEFAULT_CONFIG_FILE

    if os.path.exists(file_path):
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a mapping")
        known = {f.name for f in fields(Settings)}
        unknown = set(data) - known
        if unknown:
            print(f"{Fore.YELLOW}[!] Ignoring unknown config keys: {', '.join(sorted(unknown))}{Style.RESET_ALL}")
        settings = replace(settings, **{k: v for k, v in data.items() if k in known})
        logger.info("Loaded config from %s", file_path)
    elif path:
        raise FileNotFoundError(f"Config file not found: {path}")

    settings = replace(settings, **_env_overrides(settings))
    clean = {k: v for k, v in overrides.items() if v is not None}
    if clean:
        settings = replace(settings, **clean)
    return settings
