"""
Centralized settings and path configuration for the order core.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(v.strip() for v in value.split(',') if v.strip())


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Input files
    price_catalog: Optional[Path]
    requests_csv: Path

    # Identity collaborator: emails granted operator access
    operator_emails: tuple = ()

    # Base URL used for client portal links in outgoing email copy
    public_base_url: str = "http://localhost:8000"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()
        package_dir = Path(__file__).resolve().parent.parent

        catalog_env = os.getenv('TRACK_ORDERS_PRICE_CATALOG')
        requests_env = os.getenv('TRACK_ORDERS_REQUESTS_CSV')

        return cls(
            project_root=root,
            price_catalog=Path(catalog_env) if catalog_env else package_dir / 'data' / 'price_catalog.csv',
            requests_csv=Path(requests_env) if requests_env else root / 'data' / 'requests.csv',
            operator_emails=_split_csv(os.getenv('TRACK_ORDERS_OPERATOR_EMAILS', '')),
            public_base_url=os.getenv('TRACK_ORDERS_PUBLIC_URL', 'http://localhost:8000').rstrip('/'),
            log_level=os.getenv('TRACK_ORDERS_LOG_LEVEL', 'INFO').upper(),
            log_json=os.getenv('TRACK_ORDERS_LOG_JSON', '0') == '1',
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
