"""
Gateway Settings

Persisted as opcua-settings.json in the host data folder:
    {"portNumber": 23591, "pgmEndToStartInterval": 1.0, "useHTTPS": true}
"""

import logging
import os
import threading
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger("pgm_state.settings")

SETTINGS_FILE = "opcua-settings.json"
GATEWAY_HOST = "localhost"
UPDATE_PATH = "/api/OpcUaNode/UpdateNodeValue"


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    port_number: int = Field(23591, alias="portNumber")
    # Program end to start interval in seconds
    pgm_end_to_start_interval: float = Field(1.0, alias="pgmEndToStartInterval", ge=0)
    use_https: bool = Field(True, alias="useHTTPS")

    @property
    def scheme(self) -> str:
        return "https" if self.use_https else "http"

    @property
    def update_url(self) -> str:
        return f"{self.scheme}://{GATEWAY_HOST}:{self.port_number}{UPDATE_PATH}"


class SettingsStore:
    """
    Loads settings once per store. Missing file -> defaults written to disk.
    Unreadable file -> defaults, file left as-is.
    """
    def __init__(self, data_folder: str):
        self.data_folder = data_folder
        self._lock = threading.Lock()
        self._settings: Optional[Settings] = None

    @property
    def path(self) -> str:
        return os.path.join(self.data_folder, SETTINGS_FILE)

    def load(self) -> Settings:
        with self._lock:
            if self._settings is None:
                self._settings = self._read()
            return self._settings

    def reload(self) -> Settings:
        with self._lock:
            self._settings = self._read()
            return self._settings

    def _read(self) -> Settings:
        path = self.path
        if not os.path.exists(path):
            settings = Settings()
            self._write_defaults(settings)
            return settings

        try:
            # Bytes, so bad encodings surface as ValidationError
            with open(path, "rb") as f:
                settings = Settings.model_validate_json(f.read())
            logger.info(f"Loaded settings from {path}: port={settings.port_number}, "
                        f"https={settings.use_https}, resume={settings.pgm_end_to_start_interval}s")
            return settings
        except (OSError, ValidationError) as e:
            logger.warning(f"Settings file {path} unreadable, using defaults: {e}")
            return Settings()

    def _write_defaults(self, settings: Settings):
        try:
            os.makedirs(self.data_folder, exist_ok=True)
            with open(self.path, "w") as f:
                f.write(settings.model_dump_json(by_alias=True))
            logger.info(f"Wrote default settings to {self.path}")
        except OSError as e:
            logger.warning(f"Could not persist default settings to {self.path}: {e}")
