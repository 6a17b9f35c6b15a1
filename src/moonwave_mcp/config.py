"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Optional

import platformdirs

APP_NAME = "moonwave-mcp"
ENV_PREFIX = "MOONWAVE_MCP_"
SOURCES_FILE_NAME = "moonwave-mcp.json"


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# HTTP transport
	host: str = "127.0.0.1"
	port: int = 8787
	heartbeat_interval: float = 30.0
	idle_timeout: float = 300.0

	# Aggregation
	fetch_timeout: float = 15.0
	sources_file: Optional[Path] = None

	log_level: str = "INFO"

	# Derived paths
	config_file: Path = field(init=False)
	snapshot_dir: Path = field(init=False)

	def __post_init__(self) -> None:
		self.config_file = self.config_dir / "config.toml"
		self.snapshot_dir = self.data_dir / "snapshots"

	@property
	def resolved_sources_file(self) -> Path:
		"""The registry file to load when no sources are given on the command line."""
		return self.sources_file or self.config_dir / SOURCES_FILE_NAME

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)


def _path(value: Any) -> Path:
	return Path(os.path.expanduser(str(value)))


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
	"config_dir": _path,
	"data_dir": _path,
	"sources_file": _path,
	"host": str,
	"port": int,
	"heartbeat_interval": float,
	"idle_timeout": float,
	"fetch_timeout": float,
	"log_level": lambda v: str(v).upper(),
}


def _apply_env_overrides(config: Config) -> Config:
	"""Apply MOONWAVE_MCP_* environment variable overrides."""
	for attr, convert in _CONVERTERS.items():
		val = os.getenv(ENV_PREFIX + attr.upper())
		if val:
			try:
				setattr(config, attr, convert(val))
			except ValueError as e:
				raise ValueError(f"Invalid value for {ENV_PREFIX}{attr.upper()}: {val!r}") from e
	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	settable = {f.name for f in fields(config) if f.init}
	for key, val in data.items():
		if key in settable:
			convert = _CONVERTERS.get(key)
			setattr(config, key, convert(val) if convert else val)

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	# The config dir itself may be overridden from the environment
	config_dir = os.getenv(ENV_PREFIX + "CONFIG_DIR")
	if config_dir:
		config.config_dir = _path(config_dir)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.ensure_dirs()
	return config


# Singleton
_config: Optional[Config] = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config
