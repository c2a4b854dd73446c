from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_CORS_ORIGINS = [
    "http://localhost:9000",
    "http://127.0.0.1:9000",
    "http://localhost:9001",
    "http://127.0.0.1:9001",
]


class AppConfig(BaseModel):
    """Конфиг сервера Kanban."""

    data_dir: str = Field(default_factory=lambda: str(config_dir() / "data"))
    # None -> <data_dir>/uploads
    uploads_dir: Optional[str] = Field(default=None)

    host: str = "127.0.0.1"
    port: int = 3000

    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def uploads_path(self) -> Path:
        if self.uploads_dir:
            return Path(self.uploads_dir).expanduser()
        return self.data_path / "uploads"

    def ensure_directories(self) -> None:
        """Create the data and uploads directories if missing."""
        self.data_path.mkdir(parents=True, exist_ok=True)
        self.uploads_path.mkdir(parents=True, exist_ok=True)


# env var -> AppConfig field
ENV_OVERRIDES = {
    "KANBAN_DATA_DIR": "data_dir",
    "KANBAN_UPLOADS_DIR": "uploads_dir",
    "KANBAN_HOST": "host",
    "PORT": "port",
}


def config_dir() -> Path:
    return Path.home() / ".kanban-board"


def config_path() -> Path:
    return config_dir() / "config.json"


def apply_env_overrides(cfg: AppConfig, environ: Optional[dict] = None) -> AppConfig:
    environ = os.environ if environ is None else environ
    updates = {
        field: environ[name]
        for name, field in ENV_OVERRIDES.items()
        if environ.get(name)
    }
    if not updates:
        return cfg
    return AppConfig(**{**cfg.model_dump(), **updates})


def load_config(path: Optional[Path] = None, environ: Optional[dict] = None) -> AppConfig:
    path = path or config_path()
    if path.exists():
        data = json.loads(path.read_text(encoding="utf-8"))
        cfg = AppConfig(**data)
    else:
        cfg = AppConfig()
    return apply_env_overrides(cfg, environ)


def save_config(cfg: AppConfig, path: Optional[Path] = None) -> None:
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cfg.model_dump_json(indent=2), encoding="utf-8")
