"""
Unit tests for the AOS version control adapter, engine and bridge
"""

import os
import sys
import threading
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aos.events import EventBus, SHELL_OUTPUT
from aos.exceptions import VcsEnoent, VcsError, VcsFsError
from aos.shell import ShellInterpreter
from aos.vcs import GEMINI_FLOW_FILES, GitEngine, GitFsAdapter, VcsBridge, status_label
from aos.vcs.catalog import lookup, normalize_url
from aos.vcs.engine import hash_object
from aos.vfs import MemoryBlobStore, VirtualFileSystem

REPO = '/workspace/repo'
GEMINI_FLOW_URL = 'https://github.com/clduab11/gemini-flow.git'


class FakeClock:
    def __init__(self, now=1700000000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestGitFsAdapter(unittest.TestCase):
    """Test the POSIX-style contract over the VFS"""

    def setUp(self):
        self.vfs = VirtualFileSystem(MemoryBlobStore(), clock=FakeClock(50.0))
        self.fs = GitFsAdapter(self.vfs)

    def test_missing_paths_are_enoent(self):
        for call in (lambda: self.fs.read_file('/workspace/none'),
                     lambda: self.fs.readdir('/workspace/none'),
                     lambda: self.fs.stat('/workspace/none'),
                     lambda: self.fs.lstat('/workspace/none'),
                     lambda: self.fs.unlink('/workspace/none'),
                     lambda: self.fs.rmdir('/workspace/none')):
            with self.assertRaises(VcsEnoent) as ctx:
                call()
            self.assertEqual(ctx.exception.code, 'ENOENT')
            self.assertEqual(ctx.exception.path, '/workspace/none')

    def test_kind_mismatches(self):
        self.fs.write_file('/workspace/f.txt', 'data')

        with self.assertRaises(VcsFsError) as ctx:
            self.fs.readdir('/workspace/f.txt')
        self.assertEqual(ctx.exception.code, 'ENOTDIR')

        with self.assertRaises(VcsFsError) as ctx:
            self.fs.read_file('/workspace')
        self.assertEqual(ctx.exception.code, 'EISDIR')

        with self.assertRaises(VcsFsError) as ctx:
            self.fs.write_file('/workspace/f.txt/inner', 'x')
        self.assertEqual(ctx.exception.code, 'ENOTDIR')

        with self.assertRaises(VcsFsError) as ctx:
            self.fs.rmdir('/workspace/f.txt')
        self.assertEqual(ctx.exception.code, 'ENOTDIR')

    def test_read_with_encoding(self):
        self.fs.write_file('/workspace/t.txt', 'héllo')
        self.assertEqual(self.fs.read_file('/workspace/t.txt'), 'héllo'.encode('utf-8'))
        self.assertEqual(self.fs.read_file('/workspace/t.txt', 'utf-8'), 'héllo')

    def test_stat(self):
        self.fs.write_file('/workspace/s.txt', b'12345')
        info = self.fs.stat('/workspace/s.txt')
        self.assertTrue(info.is_file())
        self.assertFalse(info.is_directory())
        self.assertFalse(info.is_symbolic_link())
        self.assertEqual(info.size, 5)
        self.assertEqual(info.mode, 0o100644)
        self.assertEqual(info.mtime_ms, 50000.0)
        self.assertEqual(info.type, 1)

        info = self.fs.lstat('/workspace')
        self.assertTrue(info.is_directory())
        self.assertEqual(info.mode, 0o40755)

    def test_readdir_and_unlink(self):
        self.fs.mkdir('/workspace/d')
        self.fs.write_file('/workspace/d/one', '1')
        self.fs.write_file('/workspace/d/two', '2')
        self.assertEqual(self.fs.readdir('/workspace/d'), ['one', 'two'])
        self.fs.unlink('/workspace/d/one')
        self.assertEqual(self.fs.readdir('/workspace/d'), ['two'])
        self.assertFalse(self.fs.exists('/workspace/d/one'))


class TestGitEngine(unittest.TestCase):
    """Test the object store"""

    def setUp(self):
        self.clock = FakeClock()
        self.vfs = VirtualFileSystem(MemoryBlobStore(), clock=self.clock)
        self.engine = GitEngine(GitFsAdapter(self.vfs), clock=self.clock)
        self.engine.init(REPO)

    def test_hash_matches_git(self):
        self.assertEqual(hash_object('blob', b'')[0], 'e69de29bb2d1d6434b8b29ae775ad8c2e48c5391')
        self.assertEqual(hash_object('blob', b'hello\n')[0],
                         'ce013625030ba8dba906f756967f9e9ca394464a')
        self.assertEqual(hash_object('tree', b'')[0], '4b825dc642cb6eb9a060e54bf8d69288fbee4904')

    def test_loose_objects(self):
        oid = self.engine.write_object(REPO, 'blob', b'hello\n')
        self.assertTrue(self.vfs.is_file(f'{REPO}/.git/objects/ce/013625030ba8dba906f756967f9e9ca394464a'))
        self.assertEqual(self.engine.read_object(REPO, oid), ('blob', b'hello\n'))
        with self.assertRaises(VcsError):
            self.engine.read_object(REPO, '0' * 40)

    def test_tree_round_trip(self):
        entries = {
            'README.md': hash_object('blob', b'a')[0],
            'src/index.ts': hash_object('blob', b'b')[0],
            'src/core/x.ts': hash_object('blob', b'c')[0],
            'src.txt': hash_object('blob', b'd')[0],
        }
        tree = self.engine.write_tree(REPO, entries)
        self.assertEqual(self.engine.read_tree(REPO, tree), entries)

    def test_init_layout(self):
        self.assertEqual(self.vfs.read_text(f'{REPO}/.git/HEAD'), 'ref: refs/heads/main\n')
        self.assertTrue(self.vfs.is_dir(f'{REPO}/.git/refs/heads'))
        self.assertFalse(self.engine.init(REPO))
        self.assertIsNone(self.engine.resolve_head(REPO))

    def test_commit_ids_are_deterministic(self):
        def build():
            vfs = VirtualFileSystem(MemoryBlobStore(), clock=self.clock)
            engine = GitEngine(GitFsAdapter(vfs), clock=self.clock)
            engine.init(REPO)
            vfs.write_file(f'{REPO}/a.txt', 'same')
            engine.add(REPO)
            return engine.commit(REPO, 'msg', 'A', 'a@example.com')

        self.assertEqual(build(), build())

    def test_find_root(self):
        self.vfs.mkdir(f'{REPO}/src/deep')
        self.assertEqual(self.engine.find_root(f'{REPO}/src/deep'), REPO)
        self.assertIsNone(self.engine.find_root('/home/aussie'))


class TestVcsBridge(unittest.TestCase):
    """Test repository operations through the bridge"""

    def setUp(self):
        self.clock = FakeClock()
        self.bus = EventBus()
        self.vfs = VirtualFileSystem(MemoryBlobStore(), event_bus=self.bus, clock=self.clock)
        self.bridge = VcsBridge(self.vfs, clock=self.clock)
        self.output = []
        self.bus.subscribe(SHELL_OUTPUT, lambda e: self.output.append(e['payload']))

    def labels(self, dir=REPO):
        result = self.bridge.status(dir)
        self.assertTrue(result.ok, result.error)
        return [(e.path, e.label) for e in result.value]

    def test_init_is_idempotent(self):
        first = self.bridge.init(REPO)
        second = self.bridge.init(REPO)
        self.assertTrue(first.ok)
        self.assertTrue(first.value)
        self.assertTrue(second.ok)
        self.assertFalse(second.value)
        self.assertEqual(self.output[0], f"Initialized empty Git repository in {REPO}/.git/")

    def test_status_lifecycle(self):
        self.bridge.init(REPO)
        self.vfs.write_file(f'{REPO}/a.txt', 'one')
        self.assertEqual(self.labels(), [('a.txt', 'New')])

        self.assertTrue(self.bridge.add(REPO, '.').ok)
        self.assertTrue(self.bridge.commit(REPO, 'first').ok)
        self.assertEqual(self.labels(), [])

        self.vfs.write_file(f'{REPO}/a.txt', 'two')
        self.assertEqual(self.labels(), [('a.txt', 'Modified')])

        self.vfs.delete(f'{REPO}/a.txt')
        self.assertEqual(self.labels(), [('a.txt', 'Deleted')])

    def test_status_items_staged_flag(self):
        self.bridge.init(REPO)
        self.vfs.write_file(f'{REPO}/staged.txt', 's')
        self.vfs.write_file(f'{REPO}/loose.txt', 'l')
        self.bridge.add(REPO, 'staged.txt')

        items = {item.path: item for item in self.bridge.status_items(REPO).value}
        self.assertEqual(items['staged.txt'].status, 'new')
        self.assertTrue(items['staged.txt'].staged)
        self.assertEqual(items['loose.txt'].status, 'new')
        self.assertFalse(items['loose.txt'].staged)

    def test_commit_and_log(self):
        self.bridge.init(REPO)
        self.vfs.write_file(f'{REPO}/a.txt', 'a')
        self.bridge.add(REPO)
        first = self.bridge.commit(REPO, 'first')
        self.clock.now += 60
        self.vfs.write_file(f'{REPO}/b.txt', 'b')
        self.bridge.add(REPO, 'b.txt')
        second = self.bridge.commit(REPO, 'second')

        self.assertEqual(second.value['branch'], 'main')
        log = self.bridge.log(REPO)
        self.assertTrue(log.ok)
        self.assertEqual([e.message for e in log.value], ['second', 'first'])
        self.assertEqual(log.value[0].oid, second.value['oid'])
        self.assertEqual(log.value[1].oid, first.value['oid'])
        self.assertEqual(log.value[0].author, 'Aussie Agent')
        self.assertEqual(log.value[0].email, 'agent@aussie.os')
        self.assertEqual(log.value[0].timestamp, int(self.clock.now))
        self.assertEqual(len(self.bridge.log(REPO, depth=1).value), 1)

    def test_log_without_commits_is_fatal(self):
        self.bridge.init(REPO)
        result = self.bridge.log(REPO)
        self.assertFalse(result.ok)
        self.assertTrue(result.fatal)
        self.assertEqual(result.error, 'Could not find refs/heads/main.')

    def test_operations_outside_repository_fail(self):
        self.vfs.mkdir('/workspace/plain')
        for result in (self.bridge.status('/workspace/plain'),
                       self.bridge.add('/workspace/plain'),
                       self.bridge.commit('/workspace/plain', 'x')):
            self.assertFalse(result.ok)
            self.assertIn('not a git repository', result.error)

    def test_remove(self):
        self.bridge.init(REPO)
        self.vfs.write_file(f'{REPO}/gone.txt', 'g')
        self.bridge.add(REPO)
        self.bridge.commit(REPO, 'add')

        self.assertTrue(self.bridge.remove(REPO, 'gone.txt').ok)
        self.assertFalse(self.vfs.exists(f'{REPO}/gone.txt'))
        self.assertEqual(self.labels(), [('gone.txt', 'Deleted')])
        self.assertFalse(self.bridge.remove(REPO, 'never.txt').ok)

    def test_clone_catalogued_repository(self):
        target = '/workspace/gemini-flow'
        result = self.bridge.clone(GEMINI_FLOW_URL, target)
        self.assertTrue(result.ok, result.error)

        for path, content in GEMINI_FLOW_FILES.items():
            self.assertEqual(self.vfs.read_text(f'{target}/{path}'), content)
        log = self.bridge.log(target).value
        self.assertEqual(len(log), 1)
        self.assertEqual(log[0].message, 'Initial clone from GitHub')
        self.assertEqual(log[0].oid, result.value)
        self.assertEqual(self.labels(target), [])
        self.assertIn(f"Cloning into '{target}'...", self.output)

    def test_clone_unknown_url_touches_nothing(self):
        result = self.bridge.clone('https://github.com/someone/else', '/workspace/else')
        self.assertFalse(result.ok)
        self.assertIn('not cached', result.error)
        self.assertFalse(self.vfs.exists('/workspace/else'))

    def test_clone_into_non_empty_directory(self):
        self.vfs.write_file('/workspace/taken/file.txt', 'x')
        result = self.bridge.clone(GEMINI_FLOW_URL, '/workspace/taken')
        self.assertFalse(result.ok)
        self.assertIn('not an empty directory', result.error)


class TestConcurrentStaging(unittest.TestCase):
    """Test staging from two threads at once"""

    def setUp(self):
        self.vfs = VirtualFileSystem(MemoryBlobStore())
        self.engine = GitEngine(GitFsAdapter(self.vfs))
        self.engine.init(REPO)
        self.names = [f"f{i}.txt" for i in range(40)]
        for name in self.names:
            self.vfs.write_file(f"{REPO}/{name}", name)

    def run_in_threads(self, work):
        barrier = threading.Barrier(2)
        errors = []

        def worker(names):
            barrier.wait()
            try:
                for name in names:
                    work(name)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(self.names[i::2],)) for i in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        self.assertEqual(errors, [])

    def test_engine_add_keeps_every_entry(self):
        self.run_in_threads(lambda name: self.engine.add(REPO, name))
        self.assertEqual(sorted(self.engine.read_index(REPO)), sorted(self.names))

    def test_shell_git_add_keeps_every_entry(self):
        shell = ShellInterpreter(self.vfs)
        shell.execute(f'cd {REPO}')

        def add(name):
            result = shell.execute(f'git add {name}')
            self.assertEqual(result.exit_code, 0, result.stderr)

        self.run_in_threads(add)
        self.assertEqual(sorted(shell.vcs.engine.read_index(REPO)), sorted(self.names))


class TestStatusHelpers(unittest.TestCase):

    def test_status_label(self):
        self.assertEqual(status_label(0, 2, 0), 'New')
        self.assertEqual(status_label(0, 2, 2), 'New')
        self.assertEqual(status_label(1, 2, 1), 'Modified')
        self.assertEqual(status_label(1, 0, 1), 'Deleted')
        self.assertEqual(status_label(1, 1, 1), 'Unmodified')
        self.assertEqual(status_label(1, 1, 3), 'Unknown (1,1,3)')

    def test_catalog_lookup(self):
        self.assertEqual(normalize_url('git@github.com:clduab11/gemini-flow.git'),
                         'github.com/clduab11/gemini-flow')
        self.assertIsNotNone(lookup('https://GitHub.com/clduab11/gemini-flow/'))
        self.assertIsNone(lookup('https://github.com/clduab11/other'))


if __name__ == '__main__':
    unittest.main()
