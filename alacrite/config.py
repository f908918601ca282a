"""
Configuration Management

Handles loading configuration from environment variables and config files.
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import json

from dotenv import load_dotenv

from .discovery.advertiser import DOMAIN_LABEL, INSTANCE_LABEL
from .discovery.listener import DEFAULT_RECEIVE_TIMEOUT


@dataclass
class Config:
    """
    Alacrite Node Configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (ALACRITE_*)
    2. Config file (config.json)
    3. Default values
    """
    # Advertised service
    port: int = 8080
    address: Optional[str] = None  # resolved from the default route if unset
    domain_label: str = DOMAIN_LABEL
    instance_label: str = INSTANCE_LABEL

    # Discovery
    receive_timeout: float = DEFAULT_RECEIVE_TIMEOUT

    # Reporting
    api_host: str = '0.0.0.0'
    api_port: int = 8081
    report_interval: float = 0.0  # seconds, 0 disables the peer table

    # Logging
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        load_dotenv()

        config = cls()

        config.port = int(os.getenv('ALACRITE_PORT', config.port))
        config.address = os.getenv('ALACRITE_ADDRESS') or config.address
        config.domain_label = os.getenv('ALACRITE_DOMAIN', config.domain_label)
        config.instance_label = os.getenv('ALACRITE_INSTANCE', config.instance_label)

        config.receive_timeout = float(
            os.getenv('ALACRITE_RECEIVE_TIMEOUT', config.receive_timeout)
        )

        config.api_host = os.getenv('ALACRITE_API_HOST', config.api_host)
        config.api_port = int(os.getenv('ALACRITE_API_PORT', config.api_port))
        config.report_interval = float(
            os.getenv('ALACRITE_REPORT_INTERVAL', config.report_interval)
        )

        config.log_level = os.getenv('ALACRITE_LOG_LEVEL', config.log_level)

        return config

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()

        config.port = data.get('port', config.port)
        config.address = data.get('address', config.address)
        config.domain_label = data.get('domain_label', config.domain_label)
        config.instance_label = data.get('instance_label', config.instance_label)

        config.receive_timeout = data.get('receive_timeout', config.receive_timeout)

        config.api_host = data.get('api_host', config.api_host)
        config.api_port = data.get('api_port', config.api_port)
        config.report_interval = data.get('report_interval', config.report_interval)

        config.log_level = data.get('log_level', config.log_level)

        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'port': self.port,
            'address': self.address,
            'domain_label': self.domain_label,
            'instance_label': self.instance_label,
            'receive_timeout': self.receive_timeout,
            'api_host': self.api_host,
            'api_port': self.api_port,
            'report_interval': self.report_interval,
            'log_level': self.log_level,
        }

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment.

    Environment variables override file settings.
    """
    config = Config()

    if config_path and config_path.exists():
        config = Config.from_file(config_path)

    env_config = Config.from_env()
    defaults = Config()

    # Merge (env takes precedence for non-default values)
    for key in config.to_dict():
        env_val = getattr(env_config, key)
        if env_val != getattr(defaults, key):
            setattr(config, key, env_val)

    return config


# Example config file template
EXAMPLE_CONFIG = """
{
  "port": 8080,
  "address": null,
  "domain_label": "_alacrite._tcp.local.",
  "instance_label": "Alacrite",
  "receive_timeout": 1.0,
  "api_host": "0.0.0.0",
  "api_port": 8081,
  "report_interval": 5.0,
  "log_level": "INFO"
}
"""
