"""
confidentialcast/config.py

Engine configuration, loaded from YAML.

Example (confidentialcast.yaml):

    period_length: 86400
    owner: "0x1111111111111111111111111111111111111111"
    engine_account: "0xc0ffee0000000000000000000000000000000001"
    journal_path: .confidentialcast/journal.jsonl
    signing_key_path: .confidentialcast/journal.key
    capability_key_path: .confidentialcast/capability.key
    stake_decimals: 18

Relative paths are resolved against the directory holding the file.
"""

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from confidentialcast.core.exceptions import ConfigError
from confidentialcast.core.models import is_null_account
from confidentialcast.core.time import DAY_SECONDS

CONFIG_ENV_VAR      = "CONFIDENTIALCAST_CONFIG"
DEFAULT_CONFIG_FILE = "confidentialcast.yaml"
DEFAULT_ENGINE      = "0xc0ffee0000000000000000000000000000000001"


@dataclass
class EngineConfig:
    owner:               str
    engine_account:      str           = DEFAULT_ENGINE
    period_length:       int           = DAY_SECONDS
    journal_path:        Optional[Path] = None
    signing_key_path:    Optional[Path] = None
    capability_key_path: Optional[Path] = None
    stake_decimals:      int           = 18

    def __post_init__(self) -> None:
        if not isinstance(self.owner, str) or is_null_account(self.owner):
            raise ConfigError("owner must be a non-null account", {"owner": self.owner})
        if not isinstance(self.engine_account, str) or is_null_account(self.engine_account):
            raise ConfigError("engine_account must be a non-null account")
        if not isinstance(self.period_length, int) or self.period_length <= 0:
            raise ConfigError(
                "period_length must be a positive integer",
                {"period_length": self.period_length},
            )
        if not isinstance(self.stake_decimals, int) or not 0 <= self.stake_decimals <= 18:
            raise ConfigError(
                "stake_decimals must be an integer in [0, 18]",
                {"stake_decimals": self.stake_decimals},
            )
        for name in ("journal_path", "signing_key_path", "capability_key_path"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, Path(value))

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "EngineConfig":
        known   = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("Unknown configuration keys", {"keys": ", ".join(unknown)})
        if "owner" not in data:
            raise ConfigError("Missing required configuration key 'owner'")

        values = dict(data)
        if base_dir is not None:
            for name in ("journal_path", "signing_key_path", "capability_key_path"):
                if values.get(name) is not None and not Path(values[name]).is_absolute():
                    values[name] = Path(base_dir) / values[name]
        return cls(**values)

    @classmethod
    def from_yaml(cls, config_file: Path) -> "EngineConfig":
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_file}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_file} must contain a mapping")
        return cls.from_dict(data, base_dir=config_file.parent)

    def to_yaml(self, config_file: Path) -> None:
        data = {
            k: (str(v) if isinstance(v, Path) else v)
            for k, v in asdict(self).items()
            if v is not None
        }
        config_file = Path(config_file)
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)


def resolve_config_path(explicit: Optional[str] = None) -> Path:
    """--config, then $CONFIDENTIALCAST_CONFIG, then ./confidentialcast.yaml"""
    if explicit:
        return Path(explicit)
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return Path(DEFAULT_CONFIG_FILE)
