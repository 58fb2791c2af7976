"""
Downloader Configuration Loader
Loads vendor credentials and data lake paths from configs/insider_trading.yaml

The pipeline itself never reads the environment: everything it needs is on
the DownloaderConfig passed to its constructor. The API key falls back to
the VENDOR_AUTH_TOKEN environment variable (or .env file) here, at load time.
"""
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

API_KEY_ENV = "VENDOR_AUTH_TOKEN"
DEFAULT_CONFIG_PATH = "configs/insider_trading.yaml"


@dataclass
class DownloaderConfig:
    destination_dir: Path
    api_key: str
    processed_dir: Optional[Path] = None
    map_files_dir: Optional[Path] = None
    base_url: str = "https://api.quiverquant.com/beta/"
    min_interval: float = 2.0
    max_retries: int = 5
    retry_sleep: float = 1.0
    timeout: float = 30.0
    log_dir: Path = field(default_factory=lambda: Path("data/logs/insider_trading"))

    def __post_init__(self):
        self.destination_dir = Path(self.destination_dir)
        # Existing history is read from the processed tree, defaulting to an in-place merge
        self.processed_dir = Path(self.processed_dir) if self.processed_dir else self.destination_dir
        if self.map_files_dir is not None:
            self.map_files_dir = Path(self.map_files_dir)
        self.log_dir = Path(self.log_dir)

        if not self.api_key:
            raise ValueError("QuiverQuant API key is required")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {self.min_interval}")


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH, **overrides) -> DownloaderConfig:
    """
    Build a DownloaderConfig from YAML, keyword overrides and the environment.

    Precedence: non-None keyword overrides, then the YAML file, then
    VENDOR_AUTH_TOKEN for the API key. A missing YAML file is not an error.

    :param config_path: Path to insider_trading.yaml
    :param overrides: Any DownloaderConfig field
    :return: Validated DownloaderConfig
    :raises ValueError: If no API key can be found or the YAML is not a mapping
    """
    settings: Dict[str, Any] = {}

    path = Path(config_path)
    if path.exists():
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(loaded).__name__}")
        settings.update(loaded)

    settings.update({k: v for k, v in overrides.items() if v is not None})

    if not settings.get('api_key'):
        load_dotenv()
        settings['api_key'] = os.getenv(API_KEY_ENV)

    known = {f.name for f in fields(DownloaderConfig)}
    unknown = set(settings) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

    if 'destination_dir' not in settings:
        settings['destination_dir'] = Path("data")

    return DownloaderConfig(**settings)
