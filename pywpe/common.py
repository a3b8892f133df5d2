import os
import re
import sys
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml


CONFIG_FILE = 'wpedeploy.json'

PROJECT_TYPES = ('theme', 'plugin', 'application')

DIRNAME_PATTERN = re.compile(r'^[a-z0-9_-]+$', re.IGNORECASE)
SUBDOMAIN_PATTERN = re.compile(r'^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$', re.IGNORECASE)

RED = '\x1b[31m'
CYAN = '\x1b[36m'
GREEN = '\x1b[32m'
RESET = '\x1b[0m'

logger = logging.getLogger(__name__)


class DeployError(RuntimeError):
    """A deploy step failed; the run stops here."""


@dataclass(frozen=True)
class ProjectRef:
    type: str
    dirname: str
    source_path: str = '.'

    @property
    def destination_path(self) -> str:
        return get_project_destination_path(self.type, self.dirname)


@dataclass
class ProjectConfig:
    type: str
    dirname: str
    subdomain: str
    scripts: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {'type': self.type, 'dirname': self.dirname, 'subdomain': self.subdomain}
        if self.scripts:
            data['scripts'] = self.scripts
        return data


def get_project_destination_path(type: str, dirname: str) -> str:
    """Where the project lives inside the WP Engine repo."""
    if type == 'application':
        return dirname
    return f'wp-content/{type}s/{dirname}'


def is_valid_project_type(type) -> bool:
    return type in PROJECT_TYPES


def is_valid_dirname(dirname) -> bool:
    return isinstance(dirname, str) and bool(DIRNAME_PATTERN.match(dirname))


def is_valid_subdomain(subdomain) -> bool:
    return isinstance(subdomain, str) and bool(SUBDOMAIN_PATTERN.match(subdomain))


def is_valid_config(config) -> bool:
    if not isinstance(config, dict):
        return False
    return (
        is_valid_project_type(config.get('type'))
        and is_valid_dirname(config.get('dirname'))
        and is_valid_subdomain(config.get('subdomain'))
    )


def _load_config(config_path: str) -> Dict:
    with open(config_path, 'r', encoding='utf-8') as f:
        if config_path.endswith(('.yaml', '.yml')):
            return yaml.safe_load(f)
        return json.load(f)


def get_saved_config(project_path: str | Path = '.', config_file: Optional[str] = None) -> Optional[ProjectConfig]:
    """Load and validate the saved project config.

    Returns None when the file is missing, unreadable or invalid.
    """
    config_path = str(Path(project_path) / (config_file or CONFIG_FILE))
    if not os.path.exists(config_path):
        return None
    try:
        config = _load_config(config_path)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.debug(f"Could not read {config_path}: {e}")
        return None

    if not is_valid_config(config):
        logger.debug(f"Ignoring invalid configuration in {config_path}")
        return None

    scripts = config.get('scripts')
    return ProjectConfig(
        type=config['type'],
        dirname=config['dirname'],
        subdomain=config['subdomain'],
        scripts=scripts.strip() if isinstance(scripts, str) and scripts.strip() else None,
    )


def write_config(config: ProjectConfig, config_path: str | Path) -> None:
    with open(config_path, 'w', encoding='utf-8') as f:
        f.write(json.dumps(config.to_dict(), indent=2))


def cyan(text: str) -> str:
    return f'{CYAN}{text}{RESET}'


def green(text: str) -> str:
    return f'{GREEN}{text}{RESET}'


def log_error(message: str) -> None:
    """Log a single red error line (bare, on stderr)."""
    logger.error(f'{RED}error: {message}{RESET}')


class _BelowError(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.ERROR


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowError())
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(logging.Formatter('%(message)s'))

    handlers = [stdout_handler, stderr_handler]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
