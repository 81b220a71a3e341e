"""
Portal Configuration Management

One API root for every resource, resolved once at startup:
defaults -> ~/.studenthub/config.json -> .env -> environment.
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any

from dotenv import load_dotenv


DEFAULT_API_URL = "http://localhost:5002/api"


@dataclass
class PortalConfig:
    """Configuration for the StudentHub portal client"""

    # API settings
    api_base_url: str = DEFAULT_API_URL
    timeout: float = 30.0

    # Output settings
    verbose: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_logs: bool = False

    # Session settings
    session_file: str = "session.json"

    # Export settings
    export_dir: str = "."

    # Paths
    config_dir: str = field(default_factory=lambda: str(Path.home() / ".studenthub"))

    def __post_init__(self):
        """Resolve relative paths against the config directory"""
        if not os.path.isabs(self.session_file):
            self.session_file = str(Path(self.config_dir) / self.session_file)
        self.api_base_url = self.api_base_url.rstrip("/")

    def ensure_dirs(self) -> None:
        Path(self.config_dir).mkdir(parents=True, exist_ok=True)

    def load_from_file(self, config_path: str) -> None:
        """Load configuration from JSON file"""
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = json.load(f)
                for key, value in data.items():
                    if hasattr(self, key):
                        setattr(self, key, value)
            self.api_base_url = self.api_base_url.rstrip("/")

    def save_to_file(self, config_path: Optional[str] = None) -> None:
        """Save configuration to JSON file"""
        self.ensure_dirs()
        path = Path(config_path or (Path(self.config_dir) / "config.json"))
        with open(path, 'w') as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def load_default(cls, env_file: Optional[str] = None) -> "PortalConfig":
        """Load default configuration from user config directory"""
        config = cls()
        default_config_path = Path(config.config_dir) / "config.json"
        if default_config_path.exists():
            config.load_from_file(str(default_config_path))

        # .env never overrides variables already set in the environment
        load_dotenv(env_file)
        config._load_from_env()

        return config

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_mappings = {
            "STUDENTHUB_API_URL": "api_base_url",
            "STUDENTHUB_TIMEOUT": ("timeout", float),
            "STUDENTHUB_LOG_LEVEL": "log_level",
            "STUDENTHUB_LOG_FILE": "log_file",
            "STUDENTHUB_JSON_LOGS": ("json_logs", lambda x: x.lower() == "true"),
            "STUDENTHUB_VERBOSE": ("verbose", lambda x: x.lower() == "true"),
            "STUDENTHUB_EXPORT_DIR": "export_dir",
        }

        for env_var, mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if isinstance(mapping, tuple):
                    attr, converter = mapping
                    setattr(self, attr, converter(value))
                else:
                    setattr(self, mapping, value)

        self.api_base_url = self.api_base_url.rstrip("/")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)
