# Write wpedeploy.json from command line values
import logging
import argparse
from pathlib import Path

try:
    from .common import (
        CONFIG_FILE, PROJECT_TYPES, ProjectConfig, configure_logging, get_saved_config,
        green, is_valid_dirname, is_valid_subdomain, log_error, write_config,
    )
except ImportError:
    from common import (
        CONFIG_FILE, PROJECT_TYPES, ProjectConfig, configure_logging, get_saved_config,
        green, is_valid_dirname, is_valid_subdomain, log_error, write_config,
    )


logger = logging.getLogger(__name__)


def build_config(project_path: Path, type=None, dirname=None, subdomain=None, scripts=None) -> ProjectConfig:
    """Merge explicit values over the saved config and directory defaults.

    Raises ValueError naming the first invalid field.
    """
    saved = get_saved_config(project_path)

    type = (type or (saved.type if saved else 'theme')).strip()
    dirname = (dirname or (saved.dirname if saved else project_path.name)).strip()
    subdomain = (subdomain or (saved.subdomain if saved else '')).strip()
    if scripts is None and saved:
        scripts = saved.scripts
    scripts = scripts.strip() if scripts else None

    if type not in PROJECT_TYPES:
        raise ValueError(f"Please enter a valid project type ({', '.join(PROJECT_TYPES)})")
    if not is_valid_dirname(dirname):
        raise ValueError('Please enter a valid directory name')
    if not is_valid_subdomain(subdomain):
        raise ValueError('Please enter a valid subdomain')

    return ProjectConfig(type=type, dirname=dirname, subdomain=subdomain, scripts=scripts or None)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog='wpedeploy init', description=f'Create a {CONFIG_FILE} file')
    parser.add_argument('-t', '--type', choices=PROJECT_TYPES, help='Project type (default: theme)')
    parser.add_argument('-d', '--dirname', help='Name of the theme/plugin directory (default: current directory name)')
    parser.add_argument('-s', '--subdomain', help='Your WP Engine subdomain')
    parser.add_argument('--scripts', help='Scripts to run before deploying to WP Engine')
    parser.add_argument('--project', default='.', help='Project repository root (default: current directory)')
    args = parser.parse_args(argv)

    configure_logging()
    project_path = Path(args.project).resolve()

    try:
        config = build_config(
            project_path,
            type=args.type,
            dirname=args.dirname,
            subdomain=args.subdomain,
            scripts=args.scripts,
        )
    except ValueError as e:
        log_error(str(e))
        return 1

    try:
        write_config(config, project_path / CONFIG_FILE)
    except OSError as e:
        log_error(f"unable to write {CONFIG_FILE}: {e}")
        return 1

    logger.info(green(f'Saved your configuration into {CONFIG_FILE}'))
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
