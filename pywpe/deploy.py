# Deploy a theme, plugin or application to a WP Engine git remote
import shutil
import logging
import argparse
import tempfile
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

try:
    from . import git_ops
    from .common import (
        DeployError, ProjectConfig, ProjectRef, configure_logging, cyan,
        get_project_destination_path, get_saved_config, log_error,
    )
    from .ignore import read_project_ignore, write_target_gitignore
except ImportError:
    import git_ops
    from common import (
        DeployError, ProjectConfig, ProjectRef, configure_logging, cyan,
        get_project_destination_path, get_saved_config, log_error,
    )
    from ignore import read_project_ignore, write_target_gitignore


logger = logging.getLogger(__name__)

ENVIRONMENTS = ('staging', 'production')
PRODUCTION_BRANCH = 'master'
WPE_GIT_HOST = 'git.wpengine.com'


@dataclass
class DeployContext:
    project_path: Path
    config: ProjectConfig
    environment: str
    skip_confirm: bool = False
    force: bool = False
    remote_url: Optional[str] = None

    @property
    def wpe_repo(self) -> str:
        return self.remote_url or get_wpe_repo_url(self.environment, self.config.subdomain)

    @property
    def project(self) -> ProjectRef:
        return ProjectRef(self.config.type, self.config.dirname, str(self.project_path))


def get_wpe_repo_url(environment: str, subdomain: str) -> str:
    return f'git@{WPE_GIT_HOST}:{environment}/{subdomain}.git'


def resolve_environment(project_path: str | Path, env: Optional[str] = None) -> str:
    """Explicit env wins; otherwise master deploys to production, anything else to staging."""
    if env and isinstance(env, str):
        environment = env.strip()
        if environment not in ENVIRONMENTS:
            raise DeployError(
                f"invalid env '{environment}'. Valid options are {cyan('staging')} and {cyan('production')}"
            )
        return environment

    repo = git_ops.open_repo(project_path)
    branch = git_ops.current_branch(repo)
    if branch is None:
        raise DeployError(f"this git repo '{Path(project_path).resolve()}' does not have any commits yet")
    return 'production' if branch == PRODUCTION_BRANCH else 'staging'


def stage_project(ctx: DeployContext, deployment_dir: Path) -> Path:
    """Copy the project's committed files into its place in the deployment clone."""
    project_dir = deployment_dir / get_project_destination_path(ctx.config.type, ctx.config.dirname)

    shutil.rmtree(project_dir, ignore_errors=True)
    project_dir.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Cloning current {ctx.config.type} repository into '{project_dir}'...")
    source = str(ctx.project_path)
    try:
        git_ops.clone(source, project_dir, reference=source)
    except DeployError as e:
        raise DeployError(f"failed to copy {source} into {project_dir}") from e

    shutil.rmtree(project_dir / '.git', ignore_errors=True)
    gitignore = project_dir / '.gitignore'
    if gitignore.exists():
        gitignore.unlink()
    return project_dir


def run_scripts(scripts: str, cwd: Path) -> None:
    logger.info(f"Running custom scripts '{cyan(scripts)}'...")
    proc = subprocess.run(scripts, shell=True, cwd=str(cwd))
    if proc.returncode != 0:
        raise DeployError(f"custom scripts exited with status {proc.returncode}")


def confirm_push(ctx: DeployContext) -> bool:
    question = (
        f"Are you sure you want to deploy {cyan(ctx.config.dirname)} "
        f"{ctx.config.type} to {cyan(ctx.wpe_repo)}? [y/N] "
    )
    try:
        answer = input(question)
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def deploy(ctx: DeployContext) -> str:
    """Run the whole deploy. Raises DeployError on the first failing step."""
    tmp_dir = Path(tempfile.mkdtemp(prefix='wpedeploy-'))
    deployment_dir = tmp_dir / 'deployment'
    try:
        logger.info(f"Cloning {cyan(ctx.wpe_repo)} into '{deployment_dir}'...")
        deployment = git_ops.clone(ctx.wpe_repo, deployment_dir)

        project_dir = stage_project(ctx, deployment_dir)

        if ctx.config.scripts:
            run_scripts(ctx.config.scripts, project_dir)

        project = ctx.project
        write_target_gitignore(deployment_dir, project, read_project_ignore(project.source_path))

        git_ops.stage_all(deployment)
        message = f"Update {ctx.config.type} {ctx.config.dirname} to latest version"
        commit = git_ops.commit(deployment, message)
        logger.info(f"Committed {commit.hexsha[:7]} {message}")

        if not ctx.skip_confirm and not confirm_push(ctx):
            raise DeployError("deploy cancelled, nothing was pushed")

        summary = git_ops.push(deployment, force=ctx.force)
        logger.info(f"Pushed to {ctx.wpe_repo}")
        return summary
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog='wpedeploy deploy', description='Deploy a WordPress plugin or theme to WP Engine')
    parser.add_argument('-e', '--env', help='Environment to deploy to, staging or production')
    parser.add_argument('-s', '--skip-confirm', action='store_true', help='Push changes to WP Engine repo without asking for confirmation')
    parser.add_argument('-f', '--force', action='store_true', help='Force push your changes to WP Engine repo')
    parser.add_argument('-c', '--config', default=None, help='Config file relative to the project root (default: wpedeploy.json)')
    parser.add_argument('--remote-url', help='Push to this git URL instead of the WP Engine one')
    parser.add_argument('--project', default='.', help='Project repository root (default: current directory)')
    parser.add_argument('--log-file', help='Also write the log to this file')
    parser.add_argument('--verbose', action='store_true', help='Show debug output')
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, log_file=args.log_file)
    project_path = Path(args.project).resolve()

    if not (project_path / '.git').exists():
        log_error(f"'{project_path}' is not a git repository.")
        logger.info(f"Please try running {cyan('wpedeploy')} command from the root of a git repository.")
        return 1

    config = get_saved_config(project_path, args.config)
    if config is None:
        logger.info("No configuration file found.")
        logger.info(f"Run {cyan('wpedeploy init')} or create a wpedeploy.json file manually.")
        return 1

    try:
        ctx = DeployContext(
            project_path=project_path,
            config=config,
            environment=resolve_environment(project_path, args.env),
            skip_confirm=args.skip_confirm,
            force=args.force,
            remote_url=args.remote_url,
        )
        deploy(ctx)
    except DeployError as e:
        log_error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Deploy cancelled by user")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
