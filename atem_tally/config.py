from __future__ import annotations

import importlib
import importlib.util
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .core.queues import OverflowPolicy
from .dispatch.addressing import DEFAULT_ADDRESS_TEMPLATE, DEFAULT_STRICT_ADDRESS_TEMPLATE, validate_template
from .utils.dict_utils import deep_merge
from .utils.env_config import ENV_PREFIX, apply_env_overrides

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


@dataclass
class SystemConfig:
    log_level: str = "INFO"

    def to_dict(self) -> Dict:
        return {"log_level": self.log_level}


@dataclass
class ReconnectConfig:
    initial_delay_ms: int = 1_000
    max_delay_ms: int = 10_000

    def to_dict(self) -> Dict:
        return {
            "initial_delay_ms": self.initial_delay_ms,
            "max_delay_ms": self.max_delay_ms,
        }


@dataclass
class SwitcherConfig:
    host: str = "192.168.1.240"
    poll_interval_ms: int = 50
    connect_timeout_ms: int = 5_000
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)

    def to_dict(self) -> Dict:
        return {
            "host": self.host,
            "poll_interval_ms": self.poll_interval_ms,
            "connect_timeout_ms": self.connect_timeout_ms,
            "reconnect": self.reconnect.to_dict(),
        }


@dataclass
class OscConfig:
    host: str = "192.168.1.10"
    port: int = 8000
    address_template: str = DEFAULT_ADDRESS_TEMPLATE
    strict_address_template: str = DEFAULT_STRICT_ADDRESS_TEMPLATE

    def to_dict(self) -> Dict:
        return {
            "host": self.host,
            "port": self.port,
            "address_template": self.address_template,
            "strict_address_template": self.strict_address_template,
        }


@dataclass
class ResetConfig:
    first_index: int = 1
    count: int = 8

    def to_dict(self) -> Dict:
        return {"first_index": self.first_index, "count": self.count}


@dataclass
class TallyConfig:
    strict_me: bool = False
    pacing_interval_ms: int = 200
    reset: ResetConfig = field(default_factory=ResetConfig)

    def to_dict(self) -> Dict:
        return {
            "strict_me": self.strict_me,
            "pacing_interval_ms": self.pacing_interval_ms,
            "reset": self.reset.to_dict(),
        }


@dataclass
class BufferingConfig:
    batch_queue_max: int = 1_000
    overflow_policy: str = OverflowPolicy.BLOCK.value

    def to_dict(self) -> Dict:
        return {
            "batch_queue_max": self.batch_queue_max,
            "overflow_policy": self.overflow_policy,
        }


@dataclass
class Config:
    system: SystemConfig = field(default_factory=SystemConfig)
    switcher: SwitcherConfig = field(default_factory=SwitcherConfig)
    osc: OscConfig = field(default_factory=OscConfig)
    tally: TallyConfig = field(default_factory=TallyConfig)
    buffering: BufferingConfig = field(default_factory=BufferingConfig)

    def to_dict(self) -> Dict:
        return {
            "system": self.system.to_dict(),
            "switcher": self.switcher.to_dict(),
            "osc": self.osc.to_dict(),
            "tally": self.tally.to_dict(),
            "buffering": self.buffering.to_dict(),
        }

    @classmethod
    def from_yaml(cls, paths: Optional[List[Path]], *, env_prefix: str = ENV_PREFIX) -> "Config":
        """Load and merge multiple YAML config files.

        Configs are merged left-to-right on top of the defaults, with later files
        overriding earlier ones; ``TALLY_*`` environment variables are applied last.
        """
        valid_paths = []
        for path in paths or []:
            if path.is_file():
                valid_paths.append(path)
            else:
                logger.warning("Config path does not exist or is not a file: %s", path)

        merged_dict = DEFAULT_CONFIG.to_dict()
        if not valid_paths:
            logger.info("No valid config files found, using default config")

        if valid_paths:
            yaml = cls._import_yaml()
            for path in valid_paths:
                with Path(path).open("r", encoding="utf-8") as f:
                    try:
                        data = yaml.safe_load(f) or {}
                    except yaml.YAMLError as exc:
                        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
                if not isinstance(data, dict):
                    raise ConfigError(f"Config file {path} must contain a mapping at the top level")
                merged_dict = deep_merge(merged_dict, data)

        merged_dict = apply_env_overrides(merged_dict, prefix=env_prefix)
        return cls.from_dict(merged_dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "Config":
        system = data.get("system") or {}
        switcher = data.get("switcher") or {}
        osc = data.get("osc") or {}
        tally = data.get("tally") or {}
        buffering = data.get("buffering") or {}

        try:
            config = cls(
                system=SystemConfig(**system),
                switcher=SwitcherConfig(
                    host=switcher.get("host", SwitcherConfig.host),
                    poll_interval_ms=int(switcher.get("poll_interval_ms", SwitcherConfig.poll_interval_ms)),
                    connect_timeout_ms=int(switcher.get("connect_timeout_ms", SwitcherConfig.connect_timeout_ms)),
                    reconnect=ReconnectConfig(**(switcher.get("reconnect") or {})),
                ),
                osc=OscConfig(**osc),
                tally=TallyConfig(
                    strict_me=bool(tally.get("strict_me", TallyConfig.strict_me)),
                    pacing_interval_ms=int(tally.get("pacing_interval_ms", TallyConfig.pacing_interval_ms)),
                    reset=ResetConfig(**(tally.get("reset") or {})),
                ),
                buffering=BufferingConfig(**buffering),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

        config.validate()
        return config

    def validate(self) -> None:
        if not self.switcher.host:
            raise ConfigError("switcher.host is required")
        if self.switcher.poll_interval_ms <= 0:
            raise ConfigError("switcher.poll_interval_ms must be positive")
        if not 0 < self.osc.port < 65536:
            raise ConfigError(f"osc.port out of range: {self.osc.port}")
        if self.tally.pacing_interval_ms < 0:
            raise ConfigError("tally.pacing_interval_ms cannot be negative")
        if self.tally.reset.count < 0:
            raise ConfigError("tally.reset.count cannot be negative")
        if self.buffering.batch_queue_max <= 0:
            raise ConfigError("buffering.batch_queue_max must be positive")
        try:
            OverflowPolicy(self.buffering.overflow_policy)
        except ValueError as exc:
            valid = ", ".join(p.value for p in OverflowPolicy)
            raise ConfigError(
                f"Unknown buffering.overflow_policy '{self.buffering.overflow_policy}'. Choose one of: {valid}."
            ) from exc
        try:
            validate_template(self.osc.address_template, strict=False)
            validate_template(self.osc.strict_address_template, strict=True)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    @staticmethod
    def _import_yaml():
        if importlib.util.find_spec("yaml") is None:  # type: ignore[attr-defined]
            raise ConfigError("PyYAML is required to load configuration from YAML.")
        return importlib.import_module("yaml")


DEFAULT_CONFIG = Config()
