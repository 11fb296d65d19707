"""
Unit tests for the AOS shell interpreter and its built-in commands
"""

import os
import re
import sys
import unittest
from unittest.mock import Mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aos.capabilities import MediaOutcome, ObjectiveOutcome
from aos.exceptions import PackageNotFound
from aos.packages import InstalledPackage
from aos.shell import ShellInterpreter, ShellResult, tokenize
from aos.vcs import VcsBridge
from aos.vfs import MemoryBlobStore, VirtualFileSystem

GEMINI_FLOW_URL = 'https://github.com/clduab11/gemini-flow.git'


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        clock = lambda: 0.0
        self.vfs = VirtualFileSystem(MemoryBlobStore(), clock=clock)
        self.vcs = VcsBridge(self.vfs, clock=clock)
        self.packages = Mock()
        self.executor = Mock()
        self.media = Mock()
        self.shell = ShellInterpreter(self.vfs, vcs=self.vcs, packages=self.packages,
                                      executor=self.executor, media=self.media)

    def run_ok(self, line: str) -> str:
        result = self.shell.execute(line)
        self.assertEqual(result.exit_code, 0, f"{line!r} failed: {result.stderr}")
        return result.stdout


class TestTokenizer(unittest.TestCase):

    def test_whitespace(self):
        self.assertEqual(tokenize('  ls   -la  /workspace '), ['ls', '-la', '/workspace'])
        self.assertEqual(tokenize(''), [])

    def test_quotes_group_and_are_stripped(self):
        self.assertEqual(tokenize('git commit -m "first commit"'),
                         ['git', 'commit', '-m', 'first commit'])
        self.assertEqual(tokenize("echo 'a  b' c"), ['echo', 'a  b', 'c'])


class TestInterpreter(ShellTestCase):
    """Test dispatch and the filesystem built-ins"""

    def test_empty_line(self):
        self.assertEqual(self.shell.execute('   '), ShellResult())

    def test_command_not_found(self):
        result = self.shell.execute('frobnicate --now')
        self.assertEqual(result.exit_code, 127)
        self.assertEqual(result.stderr, 'vsh: command not found: frobnicate')

    def test_handler_exceptions_become_results(self):
        def broken(args):
            raise RuntimeError('kaput')

        self.shell.register('broken', broken)
        with self.assertLogs('AOS.shell', level='ERROR'):
            result = self.shell.execute('broken')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'broken: kaput')

    def test_resolve_path(self):
        self.shell.cwd = '/workspace/proj'
        self.assertEqual(self.shell.resolve_path('src/./main.py'), '/workspace/proj/src/main.py')
        self.assertEqual(self.shell.resolve_path('../other'), '/workspace/other')
        self.assertEqual(self.shell.resolve_path('/etc//hosts'), '/etc/hosts')
        self.assertEqual(self.shell.resolve_path('/../..'), '/')

    def test_cd_and_pwd(self):
        self.assertEqual(self.run_ok('pwd'), '/workspace')
        self.run_ok('cd /home/aussie/Desktop')
        self.assertEqual(self.shell.get_cwd(), '/home/aussie/Desktop')
        self.run_ok('cd ..')
        self.assertEqual(self.run_ok('pwd'), '/home/aussie')
        self.run_ok('cd')
        self.assertEqual(self.shell.cwd, '/workspace')

    def test_cd_rejects_missing_and_files(self):
        result = self.shell.execute('cd nowhere')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'cd: no such directory: nowhere')
        self.assertEqual(self.shell.execute('cd /home/aussie/Desktop/README.txt').exit_code, 1)
        self.assertEqual(self.shell.cwd, '/workspace')

    def test_ls(self):
        self.run_ok('mkdir src')
        self.run_ok('echo x > notes.md')
        self.assertEqual(self.run_ok('ls'), 'src/\nnotes.md')
        self.assertEqual(self.run_ok('ls /home/aussie'), 'Desktop/')

        result = self.shell.execute('ls missing')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, "ls: cannot access '/workspace/missing'")

    def test_echo_and_cat(self):
        self.assertEqual(self.run_ok('echo hello   world'), 'hello world')
        self.assertEqual(self.run_ok('echo "a b" > f.txt'), '')
        self.assertEqual(self.run_ok('cat f.txt'), 'a b')
        self.run_ok('echo c >> f.txt')
        self.assertEqual(self.vfs.read_text('/workspace/f.txt'), 'a bc')
        self.run_ok('echo new > f.txt')
        self.assertEqual(self.run_ok('cat /workspace/f.txt'), 'new')

    def test_echo_into_directory_fails(self):
        result = self.shell.execute('echo x > /workspace')
        self.assertEqual(result.exit_code, 1)
        self.assertTrue(result.stderr.startswith('echo:'))

    def test_cat_errors(self):
        self.assertEqual(self.shell.execute('cat').exit_code, 1)
        result = self.shell.execute('cat nope.txt')
        self.assertEqual(result.exit_code, 1)
        self.assertTrue(result.stderr.startswith('cat:'))

    def test_mkdir_and_rm(self):
        self.run_ok('mkdir -p a/b/c')
        self.assertTrue(self.vfs.is_dir('/workspace/a/b/c'))
        self.run_ok('rm -rf a')
        self.assertFalse(self.vfs.exists('/workspace/a'))
        self.run_ok('rm -rf a')
        self.assertEqual(self.shell.execute('rm').exit_code, 1)
        self.assertEqual(self.shell.execute('mkdir').exit_code, 1)

    def test_help(self):
        self.assertIn('Aussie OS v2.1 Commands', self.run_ok('help'))
        self.assertIn('git commit -m <message>', self.run_ok('help git'))
        self.assertEqual(self.shell.short_help('cat'), 'Display file contents')
        self.assertEqual(self.shell.execute('help nothing').exit_code, 1)


class TestGitCommand(ShellTestCase):
    """Test git through the shell"""

    def setUp(self):
        super().setUp()
        self.run_ok('mkdir /workspace/proj')
        self.run_ok('cd /workspace/proj')

    def test_full_cycle(self):
        self.assertEqual(self.run_ok('git init'),
                         'Initialized empty Git repository in /workspace/proj/.git/')
        self.run_ok('echo hi > a.txt')
        self.assertEqual(self.run_ok('git status'), 'a.txt: New')
        self.run_ok('git add .')

        out = self.run_ok('git commit -m "first commit"')
        self.assertRegex(out, r'^\[main [0-9a-f]{7}\] first commit$')
        self.assertEqual(self.run_ok('git status'),
                         'On branch main\nNothing to commit, working tree clean')

        log = self.run_ok('git log')
        self.assertTrue(log.startswith('commit ' + out[6:13]))
        self.assertIn('Author: Aussie Agent', log)
        self.assertIn('Date: 1970-01-01T00:00:00.000Z', log)
        self.assertIn('    first commit', log)

    def test_commit_default_message(self):
        self.run_ok('git init')
        self.run_ok('echo x > x.txt')
        self.run_ok('git add x.txt')
        self.assertTrue(self.run_ok('git commit').endswith('] update'))

    def test_add_from_subdirectory(self):
        self.run_ok('git init')
        self.run_ok('mkdir src')
        self.run_ok('cd src')
        self.run_ok('echo y > b.txt')
        self.run_ok('git add b.txt')

        items = self.vcs.status_items('/workspace/proj').value
        self.assertEqual([(i.path, i.staged) for i in items], [('src/b.txt', True)])

    def test_log_without_commits(self):
        self.run_ok('git init')
        result = self.shell.execute('git log')
        self.assertEqual(result.exit_code, 128)
        self.assertEqual(result.stderr, 'fatal: Could not find refs/heads/main.')

    def test_status_outside_repository(self):
        result = self.shell.execute('git status')
        self.assertEqual(result.exit_code, 1)
        self.assertIn('not a git repository', result.stderr)

    def test_unsupported_subcommand(self):
        result = self.shell.execute('git push origin main')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'git: push command not fully supported yet.')
        self.assertEqual(self.shell.execute('git').exit_code, 1)

    def test_rm(self):
        self.run_ok('git init')
        self.run_ok('echo z > z.txt')
        self.run_ok('git add .')
        self.run_ok('git commit -m add')
        self.assertEqual(self.run_ok('git rm z.txt'), "rm 'z.txt'")
        self.assertEqual(self.run_ok('git status'), 'z.txt: Deleted')

    def test_clone(self):
        self.run_ok('cd /workspace')
        out = self.run_ok(f'git clone {GEMINI_FLOW_URL}')
        self.assertEqual(out, f"Cloned '{GEMINI_FLOW_URL}' into '/workspace/gemini-flow'")
        self.assertIn('"name": "@clduab11/gemini-flow"', self.run_ok('cat gemini-flow/package.json'))

        self.run_ok('cd gemini-flow/src')
        self.assertIn('Initial clone from GitHub', self.run_ok('git log'))

    def test_clone_unknown_repository(self):
        result = self.shell.execute('git clone https://github.com/nobody/nothing.git mine')
        self.assertEqual(result.exit_code, 1)
        self.assertIn('not cached', result.stderr)
        self.assertFalse(self.vfs.exists('/workspace/mine'))

    def test_clone_failure_keeps_existing_directory(self):
        self.run_ok('mkdir /workspace/mine')
        self.assertEqual(self.shell.execute('git clone https://example.com/x.git mine').exit_code, 1)
        self.assertTrue(self.vfs.is_dir('/workspace/mine'))


class TestApmCommand(ShellTestCase):
    """Test apm with a stubbed package manager"""

    def test_install(self):
        self.packages.install.return_value = 'Package leftpad installed from https://index/leftpad/json'
        self.assertEqual(self.run_ok('apm install leftpad'),
                         'Package leftpad installed from https://index/leftpad/json')
        self.packages.install.assert_called_once_with('leftpad')

    def test_install_failure(self):
        self.packages.install.side_effect = PackageNotFound('Failed to install nope: package not found')
        result = self.shell.execute('apm install nope')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'Failed to install nope: package not found')

    def test_list_and_usage(self):
        self.packages.list_installed.return_value = []
        self.assertEqual(self.run_ok('apm list'), 'No packages installed')
        self.packages.list_installed.return_value = [
            InstalledPackage(name='rich', version='13.7.0', source_url='u', import_name='rich')]
        self.assertEqual(self.run_ok('apm list'), 'rich@13.7.0')

        self.assertEqual(self.shell.execute('apm').exit_code, 1)
        self.assertEqual(self.shell.execute('apm install').exit_code, 1)
        self.assertEqual(self.shell.execute('apm upgrade x').exit_code, 1)

    def test_without_package_manager(self):
        shell = ShellInterpreter(self.vfs)
        self.assertEqual(shell.execute('apm install x').exit_code, 1)


class TestGeminiFlowCommand(ShellTestCase):
    """Test gemini-flow against stubbed capabilities"""

    def test_jules(self):
        self.executor.execute.return_value = ObjectiveOutcome('success', 'Task done', 'all green')
        out = self.run_ok('gemini-flow jules remote create "Build login" --quantum')
        self.assertEqual(out, 'Task done\nall green')
        self.executor.execute.assert_called_once_with('Build login', 'feature', {'enableQuantum': True})

    def test_jules_defaults_and_failure(self):
        self.executor.execute.return_value = ObjectiveOutcome('failure', 'Agents disagreed')
        result = self.shell.execute('gemini-flow jules')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'Agents disagreed')
        self.executor.execute.assert_called_once_with('General Task', 'feature', {'enableQuantum': False})

    def test_hive_mind(self):
        self.executor.execute.return_value = ObjectiveOutcome('success', 'Swarm finished')
        out = self.run_ok('gemini-flow hive-mind spawn --objective "Map the repo"')
        self.assertEqual(out, '[HiveMind] Swarm Spawned.\nSwarm finished')
        self.assertEqual(self.executor.execute.call_args[0][:2], ('Map the repo', 'swarm-op'))

    def test_media(self):
        self.media.generate.return_value = MediaOutcome('success', file='/workspace/media/v.mp4')
        self.assertEqual(self.run_ok('gemini-flow veo3 --prompt sunset'),
                         'Generated: /workspace/media/v.mp4')
        self.media.generate.assert_called_once_with('veo3', 'sunset', {})

        self.media.generate.return_value = MediaOutcome('failure', error='quota exceeded')
        result = self.shell.execute('gemini-flow lyria')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'quota exceeded')

    def test_executor_exception(self):
        self.executor.execute.side_effect = RuntimeError('offline')
        result = self.shell.execute('gemini-flow swarm --objective x')
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stderr, 'offline')

    def test_missing_capabilities(self):
        shell = ShellInterpreter(self.vfs)
        self.assertEqual(shell.execute('gemini-flow jules').exit_code, 1)
        self.assertEqual(shell.execute('gemini-flow imagen4 --prompt cat').exit_code, 1)

    def test_init_and_usage(self):
        self.assertEqual(self.run_ok('gemini-flow init'),
                         'Initialized gemini-flow with protocols: A2A, MCP')
        result = self.shell.execute('gemini-flow')
        self.assertEqual(result.exit_code, 1)
        self.assertTrue(result.stderr.startswith('Usage: gemini-flow'))


if __name__ == '__main__':
    unittest.main()
