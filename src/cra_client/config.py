"""Configuration constants for CRA Client"""

import os
from pathlib import Path

from platformdirs import user_data_dir


class Config:
    """Static settings and per-user locations"""

    APP_NAME = "CRA Client"

    # Window
    DEFAULT_TITLE = "CRA Client"
    DEFAULT_WIDTH = 1280
    DEFAULT_HEIGHT = 800

    # Deployment target
    DEFAULT_APP_URL = "http://192.168.50.55:3000"
    DEFAULT_ALLOWED_HOSTS = "192.168.50.55"
    # Written by early builds of the first-run generator
    STALE_DEFAULT_APP_URLS = ("https://192.168.50.55",)

    # Process environment namespace
    ENV_PREFIX = "CRA_CLIENT_"

    # Config files
    CONFIG_FILENAME = "client.env"
    GENERATED_HEADER = "# Auto-generated default configuration for CRA Client."

    # Network
    PROBE_TIMEOUT = 8.0
    PROBE_MAX_REDIRECTS = 5
    DEPLOY_INFO_PATH = "/api/admin/deploy-info"
    DEPLOY_INFO_TIMEOUT = 8.0
    # Upper bound for one JS bridge call (probe plus deploy-info)
    GATE_CALL_TIMEOUT = 60.0

    # Paths (APPDATA\CRA Client on Windows)
    DATA_DIR = Path(user_data_dir(APP_NAME, appauthor=False, roaming=True))
    LOGS_DIR = DATA_DIR / "logs"
    STARTUP_LOG = LOGS_DIR / "startup.log"
    APPDATA_CONFIG = DATA_DIR / CONFIG_FILENAME

    DEBUG = os.getenv("CRA_CLIENT_DEBUG", "false").lower() == "true"

    @classmethod
    def env_key(cls, key: str) -> str:
        return f"{cls.ENV_PREFIX}{key}"

    @classmethod
    def default_client_env(cls) -> str:
        return (
            f"{cls.GENERATED_HEADER}\n"
            "# Update APP_URL and ALLOWED_HOSTS if your deployment target changes.\n"
            f"APP_URL={cls.DEFAULT_APP_URL}\n"
            f"ALLOWED_HOSTS={cls.DEFAULT_ALLOWED_HOSTS}\n"
            f"WINDOW_TITLE={cls.DEFAULT_TITLE}\n"
            f"WINDOW_WIDTH={cls.DEFAULT_WIDTH}\n"
            f"WINDOW_HEIGHT={cls.DEFAULT_HEIGHT}\n"
        )


config = Config()
