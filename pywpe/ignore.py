"""
Merge a project's ignore rules into the WP Engine repo's .gitignore.

The project's rules are scoped to its destination path and kept inside a
block delimited by header/footer comments. Re-running the merge replaces
the block instead of adding a second one.
"""

import re
import logging
from pathlib import Path
from typing import Iterable, List

try:
    from .common import DeployError, ProjectRef
except ImportError:
    from common import DeployError, ProjectRef


logger = logging.getLogger(__name__)

# always ignored, whatever the project says
ALWAYS_IGNORE = ('.DS_Store', 'node_modules')

PROJECT_IGNORE_FILES = ('.wpeignore', '.gitignore')

TOOL_NAME = 'wpe-deploy'


def header_comment(ref: ProjectRef) -> str:
    return f'# {ref.dirname} {ref.type} (added and managed by {TOOL_NAME})'


def footer_comment(ref: ProjectRef) -> str:
    return f'# END {ref.dirname} {ref.type}'


def collect_rules(source: str, always: Iterable[str] = ALWAYS_IGNORE) -> List[str]:
    """Trimmed, non-empty, de-duplicated rules in first-seen order."""
    rules: List[str] = []
    seen = set()
    for line in [*source.split('\n'), *always]:
        line = line.strip()
        if not line or line in seen:
            continue
        seen.add(line)
        rules.append(line)
    return rules


def prefix_rule(destination_path: str, rule: str) -> str:
    if rule.startswith('/'):
        return f'{destination_path}{rule}'
    return f'{destination_path}/{rule}'


def build_block(ref: ProjectRef, source: str) -> str:
    destination_path = ref.destination_path
    rules = '\n'.join(prefix_rule(destination_path, rule) for rule in collect_rules(source))
    return f'\n\n{header_comment(ref)}\n{rules}\n{footer_comment(ref)}\n'


def block_pattern(ref: ProjectRef) -> re.Pattern:
    return re.compile(
        r'(?:\n\n)?'
        + re.escape(header_comment(ref))
        + r'[\s\S]*?'
        + re.escape(footer_comment(ref))
        + r'\n?'
    )


def remove_block(ref: ProjectRef, content: str) -> str:
    """Drop every managed block for ``ref`` from ``content``."""
    return block_pattern(ref).sub('', content)


def merge(ref: ProjectRef, project_ignore_source: str, existing_target_content: str) -> str:
    """Return the new target .gitignore content.

    Pure function: any previous block for the same project is removed and
    the freshly built block is appended at the end.
    """
    return remove_block(ref, existing_target_content) + build_block(ref, project_ignore_source)


def read_project_ignore(project_path: str | Path) -> str:
    """Text of .wpeignore, else .gitignore, else an empty string."""
    for name in PROJECT_IGNORE_FILES:
        path = Path(project_path) / name
        try:
            text = path.read_text(encoding='utf-8', errors='surrogateescape')
        except OSError:
            continue
        logger.debug(f"Using ignore rules from {path}")
        return text
    return ''


def write_target_gitignore(deployment_dir: str | Path, ref: ProjectRef, project_ignore_source: str) -> Path:
    target = Path(deployment_dir) / '.gitignore'
    # newline='' and surrogateescape keep the existing file byte-for-byte outside the block
    try:
        with open(target, 'r', encoding='utf-8', errors='surrogateescape', newline='') as f:
            existing = f.read()
    except FileNotFoundError:
        existing = ''
    except OSError as e:
        raise DeployError(f'unable to read {target}: {e}') from e

    try:
        with open(target, 'w', encoding='utf-8', errors='surrogateescape', newline='') as f:
            f.write(merge(ref, project_ignore_source, existing))
    except OSError as e:
        raise DeployError('unable to create or modify .gitignore') from e
    return target
