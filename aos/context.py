"""
Application context

Builds every core service once and hands out references, so consumers share
the same VFS, shell and scheduler without module-level singletons.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from .capabilities import MediaGenerator, ObjectiveExecutor
from .config import AOSConfig
from .events import EventBus
from .packages import PackageManager
from .scheduler import TaskScheduler
from .shell import ShellInterpreter
from .vcs import VcsBridge
from .vfs import BlobStore, FileBlobStore, MemoryBlobStore, VirtualFileSystem

logger = logging.getLogger('AOS.context')


@dataclass
class AppContext:
    config: AOSConfig
    events: EventBus
    store: BlobStore
    vfs: VirtualFileSystem
    vcs: VcsBridge
    packages: PackageManager
    shell: ShellInterpreter
    scheduler: TaskScheduler

    @classmethod
    def create(cls, config: Optional[AOSConfig] = None,
               store: Optional[BlobStore] = None,
               executor: Optional[ObjectiveExecutor] = None,
               media: Optional[MediaGenerator] = None,
               session=None) -> 'AppContext':
        """Wire up the core from configuration"""
        config = config or AOSConfig()
        events = EventBus()

        if store is None:
            if config.vfs.storage_dir:
                store = FileBlobStore(os.path.expanduser(config.vfs.storage_dir))
            else:
                store = MemoryBlobStore()

        vfs = VirtualFileSystem(store, storage_key=config.vfs.storage_key,
                                event_bus=events, home=config.vfs.home)
        vcs = VcsBridge(vfs, event_bus=events,
                        author_name=config.vcs.author_name,
                        author_email=config.vcs.author_email,
                        default_branch=config.vcs.default_branch,
                        log_depth=config.vcs.log_depth)
        packages = PackageManager(vfs, index_url=config.packages.index_url,
                                  request_timeout=config.packages.request_timeout,
                                  registry_file=config.packages.registry_file,
                                  allowed_imports=config.packages.allowed_imports,
                                  session=session)
        env = dict(config.shell.env, USER=config.shell.user)
        shell = ShellInterpreter(vfs, vcs=vcs, packages=packages,
                                 executor=executor, media=media,
                                 cwd=config.shell.cwd, env=env,
                                 resolver_cache_ttl=config.shell.resolver_cache_ttl)
        scheduler = TaskScheduler(vfs, shell, executor=executor, event_bus=events,
                                  tasks_file=config.scheduler.tasks_file,
                                  tick_seconds=config.scheduler.tick_seconds,
                                  summary_length=config.scheduler.summary_length)

        logger.debug("Application context created")
        return cls(config, events, store, vfs, vcs, packages, shell, scheduler)

    def close(self):
        self.scheduler.stop()
