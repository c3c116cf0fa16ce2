"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import platformdirs

APP_NAME = "studio-orchestrator"


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	orchestration_dir: Path = field(init=False)
	log_dir: Path = field(init=False)

	# User-configurable
	session_override: Optional[str] = None
	log_level: str = "INFO"

	def __post_init__(self) -> None:
		self.orchestration_dir = self.data_dir / "orchestration"
		self.log_dir = self.data_dir / "logs"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.orchestration_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)


def _apply_env_overrides(config: Config) -> Config:
	"""Apply STUDIO_ORCHESTRATOR_* and ORCH_SESSION_ID environment overrides."""
	path_map = {
		"STUDIO_ORCHESTRATOR_CONFIG_DIR": "config_dir",
		"STUDIO_ORCHESTRATOR_DATA_DIR": "data_dir",
	}
	for env_key, attr in path_map.items():
		val = os.getenv(env_key)
		if val:
			setattr(config, attr, Path(val))

	session_id = os.getenv("ORCH_SESSION_ID")
	if session_id:
		config.session_override = session_id

	level = os.getenv("STUDIO_ORCHESTRATOR_LOG_LEVEL")
	if level:
		config.log_level = level.upper()

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

	path_fields = {"config_dir", "data_dir"}
	for key, val in data.items():
		if hasattr(config, key):
			if key in path_fields:
				setattr(config, key, Path(os.path.expanduser(val)))
			else:
				setattr(config, key, val)

	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	# config.toml lives in the config dir, which may itself come from the environment
	config_dir = os.getenv("STUDIO_ORCHESTRATOR_CONFIG_DIR")
	if config_dir:
		config.config_dir = Path(config_dir)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.ensure_dirs()
	return config


# Singleton
_config: Config | None = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config
