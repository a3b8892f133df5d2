import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pywpe.common import DeployError, ProjectRef
from pywpe.ignore import (
    collect_rules, footer_comment, header_comment, merge,
    read_project_ignore, write_target_gitignore,
)


THEME = ProjectRef('theme', 'mytheme')
PLUGIN = ProjectRef('plugin', 'foo')
APP = ProjectRef('application', 'app')


class MergeTestCase(unittest.TestCase):
    def _rules(self, content: str, ref: ProjectRef):
        start = content.index(header_comment(ref)) + len(header_comment(ref)) + 1
        end = content.index(footer_comment(ref))
        return content[start:end].rstrip('\n').split('\n')

    def test_empty_input(self):
        out = merge(THEME, '', '')
        self.assertEqual(
            out,
            '\n\n# mytheme theme (added and managed by wpe-deploy)\n'
            'wp-content/themes/mytheme/.DS_Store\n'
            'wp-content/themes/mytheme/node_modules\n'
            '# END mytheme theme\n',
        )

    def test_mandatory_entries_always_present(self):
        for source in ('', 'build\n', '.DS_Store', '\n\n  \n'):
            rules = self._rules(merge(PLUGIN, source, ''), PLUGIN)
            self.assertIn('wp-content/plugins/foo/.DS_Store', rules)
            self.assertIn('wp-content/plugins/foo/node_modules', rules)

    def test_prefixing(self):
        out = merge(THEME, 'build\n/cache\n', '')
        self.assertIn('wp-content/themes/mytheme/build\n', out)
        self.assertIn('wp-content/themes/mytheme/cache\n', out)
        self.assertNotIn('mytheme//cache', out)

        out = merge(APP, 'logs', '')
        self.assertIn('\napp/logs\n', out)

    def test_deduplication(self):
        rules = self._rules(merge(THEME, 'node_modules\nnode_modules\n.DS_Store', ''), THEME)
        self.assertEqual(rules, [
            'wp-content/themes/mytheme/node_modules',
            'wp-content/themes/mytheme/.DS_Store',
        ])

    def test_rules_are_trimmed_and_keep_order(self):
        self.assertEqual(
            collect_rules('  dist \r\n\n*.map\ndist\n'),
            ['dist', '*.map', '.DS_Store', 'node_modules'],
        )

    def test_idempotent(self):
        once = merge(THEME, 'build\n', '*.log\n')
        twice = merge(THEME, 'build\n', once)
        self.assertEqual(once, twice)
        self.assertEqual(twice.count(header_comment(THEME)), 1)

    def test_replaces_previous_block(self):
        existing = merge(PLUGIN, 'old-rule\n', '*.log\n')
        out = merge(PLUGIN, 'new-rule\n', existing)

        self.assertTrue(out.startswith('*.log\n'))
        self.assertEqual(out.count(header_comment(PLUGIN)), 1)
        self.assertEqual(out.count(footer_comment(PLUGIN)), 1)
        self.assertIn('wp-content/plugins/foo/new-rule', out)
        self.assertNotIn('old-rule', out)
        self.assertEqual(out, merge(PLUGIN, 'new-rule\n', '*.log\n'))

    def test_other_projects_blocks_untouched(self):
        existing = merge(THEME, 'build\n', '')
        out = merge(PLUGIN, '', existing)
        self.assertTrue(out.startswith(existing))
        self.assertIn('wp-content/themes/mytheme/build', out)

    def test_duplicate_stale_blocks_are_all_removed(self):
        block = merge(PLUGIN, 'stale\n', '')
        out = merge(PLUGIN, '', '*.log\n' + block + block)
        self.assertEqual(out.count(header_comment(PLUGIN)), 1)
        self.assertNotIn('stale', out)


class IgnoreFilesTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_read_prefers_wpeignore(self):
        (self.root / '.gitignore').write_text('from-gitignore\n')
        (self.root / '.wpeignore').write_text('from-wpeignore\n')
        self.assertEqual(read_project_ignore(self.root), 'from-wpeignore\n')

    def test_read_falls_back_to_gitignore_then_empty(self):
        self.assertEqual(read_project_ignore(self.root), '')
        (self.root / '.gitignore').write_text('vendor\n')
        self.assertEqual(read_project_ignore(self.root), 'vendor\n')

    def test_write_creates_and_updates_target(self):
        target = write_target_gitignore(self.root, THEME, 'build\n')
        first = target.read_text()
        self.assertIn('wp-content/themes/mytheme/build', first)

        with open(target, 'w', encoding='utf-8', newline='') as f:
            f.write('*.log\r\n' + first)
        write_target_gitignore(self.root, THEME, 'dist\n')
        with open(target, 'r', encoding='utf-8', newline='') as f:
            second = f.read()
        self.assertTrue(second.startswith('*.log\r\n'))
        self.assertIn('wp-content/themes/mytheme/dist', second)
        self.assertNotIn('wp-content/themes/mytheme/build', second)

    def test_undecodable_bytes_pass_through(self):
        (self.root / '.wpeignore').write_bytes(b'build\n\xff\xfe\n')
        source = read_project_ignore(self.root)

        deployment = self.root / 'deployment'
        deployment.mkdir()
        (deployment / '.gitignore').write_bytes(b'*.log\n\xff\n')
        target = write_target_gitignore(deployment, THEME, source)

        data = target.read_bytes()
        self.assertTrue(data.startswith(b'*.log\n\xff\n'))
        self.assertIn(b'wp-content/themes/mytheme/build\n', data)
        self.assertIn(b'wp-content/themes/mytheme/\xff\xfe\n', data)

    def test_write_failure_raises_deploy_error(self):
        real_open = open

        def failing_open(file, mode='r', *args, **kwargs):
            if 'w' in mode:
                raise PermissionError(13, 'Permission denied', str(file))
            return real_open(file, mode, *args, **kwargs)

        with mock.patch('pywpe.ignore.open', failing_open, create=True):
            with self.assertRaisesRegex(DeployError, r'unable to create or modify \.gitignore'):
                write_target_gitignore(self.root, THEME, 'build\n')
        self.assertFalse((self.root / '.gitignore').exists())


if __name__ == '__main__':
    unittest.main()
