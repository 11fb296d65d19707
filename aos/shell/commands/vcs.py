"""
Version control commands for AOS Shell
"""

import types
import posixpath
from datetime import datetime, timezone
from typing import List, Optional

from ...exceptions import FileSystemError
from ..parser import ShellResult

GIT_USAGE = 'usage: git <clone|init|status|add|rm|commit|log> [args]'


def format_log(entries) -> str:
    blocks = []
    for entry in entries:
        date = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc)
        blocks.append(
            f"commit {entry.oid[:7]}\n"
            f"Author: {entry.author}\n"
            f"Date: {date.strftime('%Y-%m-%dT%H:%M:%S.000Z')}\n\n"
            f"    {entry.message}\n")
    return '\n'.join(blocks)


def register_commands(shell):
    """Register the git command with shell"""

    def repo_relative(self, repo: str, arg: str) -> Optional[str]:
        """Path of arg inside repo, '.' for the repo itself, None if outside"""
        target = self.resolve_path(arg)
        if target == repo:
            return '.'
        prefix = repo.rstrip('/') + '/'
        if not target.startswith(prefix):
            return None
        return target[len(prefix):]

    def git_clone(self, args: List[str]) -> ShellResult:
        if not args:
            return ShellResult.error('usage: git clone <url> [directory]')
        url = args[0]
        repo_name = url.rstrip('/').split('/')[-1]
        if repo_name.endswith('.git'):
            repo_name = repo_name[:-4]
        target = self.resolve_path(args[1] if len(args) > 1 else (repo_name or 'repo'))

        created = not self.vfs.exists(target)
        try:
            if created:
                self.vfs.mkdir(target)
        except FileSystemError as e:
            return ShellResult.error(f"git clone: {e}")

        result = self.vcs.clone(url, target)
        if not result.ok:
            if created:
                self.vfs.delete(target)
            return ShellResult.error(result.error)
        return ShellResult.success(f"Cloned '{url}' into '{target}'")

    def git_init(self, args: List[str]) -> ShellResult:
        target = self.resolve_path(args[0]) if args else self.cwd
        try:
            self.vfs.mkdir(target)
        except FileSystemError as e:
            return ShellResult.error(f"git init: {e}")
        result = self.vcs.init(target)
        if not result.ok:
            return ShellResult.error(result.error)
        if result.value:
            return ShellResult.success(f"Initialized empty Git repository in {target}/.git/")
        return ShellResult.success(f"Reinitialized existing Git repository in {target}/.git/")

    def git_status(self, repo: str, args: List[str]) -> ShellResult:
        result = self.vcs.status(repo)
        if not result.ok:
            return ShellResult.error(result.error)
        lines = [f"{entry.path}: {entry.label}" for entry in result.value]
        return ShellResult.success(
            '\n'.join(lines) or 'On branch main\nNothing to commit, working tree clean')

    def git_add(self, repo: str, args: List[str]) -> ShellResult:
        filepath = repo_relative(self, repo, args[0] if args else '.')
        if filepath is None:
            return ShellResult.error(f"fatal: '{args[0]}' is outside repository at '{repo}'")
        result = self.vcs.add(repo, filepath)
        if not result.ok:
            return ShellResult.error(result.error)
        return ShellResult.success()

    def git_rm(self, repo: str, args: List[str]) -> ShellResult:
        paths = [a for a in args if not a.startswith('-')]
        if not paths:
            return ShellResult.error('usage: git rm <path>')
        filepath = repo_relative(self, repo, paths[0])
        if filepath is None or filepath == '.':
            return ShellResult.error(f"fatal: pathspec '{paths[0]}' is outside repository")
        result = self.vcs.remove(repo, filepath)
        if not result.ok:
            return ShellResult.error(result.error)
        return ShellResult.success(f"rm '{filepath}'")

    def git_commit(self, repo: str, args: List[str]) -> ShellResult:
        message = 'update'
        if '-m' in args:
            idx = args.index('-m')
            if idx + 1 < len(args):
                message = args[idx + 1]
        result = self.vcs.commit(repo, message)
        if not result.ok:
            return ShellResult.error(result.error)
        info = result.value
        return ShellResult.success(f"[{info['branch']} {info['oid'][:7]}] {info['message']}")

    def git_log(self, repo: str, args: List[str]) -> ShellResult:
        result = self.vcs.log(repo)
        if not result.ok:
            return ShellResult.error(f"fatal: {result.error}", 128)
        return ShellResult.success(format_log(result.value))

    repo_commands = {
        'status': git_status,
        'add': git_add,
        'rm': git_rm,
        'commit': git_commit,
        'log': git_log,
    }

    def do_git(self, args: List[str]) -> ShellResult:
        """Version control over the VFS
        Usage:
            git clone <url> [directory]  - Clone a pre-cached repository
            git init [directory]         - Create a repository
            git status                   - Show changed paths
            git add [path]               - Stage files ('.' for everything)
            git rm <path>                - Unstage and delete a file
            git commit -m <message>      - Record staged files
            git log                      - Show recent commits
        """
        if not args:
            return ShellResult.error(GIT_USAGE)
        sub, rest = args[0], args[1:]

        if sub == 'clone':
            return git_clone(self, rest)
        if sub == 'init':
            return git_init(self, rest)

        handler = repo_commands.get(sub)
        if handler is None:
            return ShellResult.error(f"git: {sub} command not fully supported yet.")
        repo = self.vcs.find_root(self.cwd) or self.cwd
        return handler(self, posixpath.normpath(repo), rest)

    shell.register('git', types.MethodType(do_git, shell))
