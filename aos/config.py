"""
AOS configuration

Settings are plain pydantic models with defaults for every field, so an empty
or missing config file yields a working system. Values can be overridden from
a YAML document.
"""

import os
import logging
from typing import Dict, List, Optional, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError

logger = logging.getLogger('AOS.config')

CONFIG_ENV_VAR = 'AOS_CONFIG'
DEFAULT_CONFIG_PATH = os.path.join('~', '.aos', 'config.yaml')


class VFSSettings(BaseModel):
    """Virtual filesystem persistence"""
    storage_key: str = 'aussie_os_fs_v2'
    # None keeps the image in memory only
    storage_dir: Optional[str] = None
    home: str = '/home/aussie'


class ShellSettings(BaseModel):
    """Shell interpreter defaults"""
    cwd: str = '/workspace'
    user: str = 'aussie'
    env: Dict[str, str] = Field(default_factory=lambda: {
        'PATH': '/usr/bin:/bin',
        'HOME': '/home/aussie',
        'USER': 'aussie',
        'SHELL': '/bin/vsh',
        'TERM': 'xterm-256color',
        'LANG': 'en_US.UTF-8',
        'NODE_ENV': 'production',
    })
    resolver_cache_ttl: float = 5.0

    @field_validator('cwd')
    def validate_cwd(cls, v):
        if not v.startswith('/'):
            raise ValueError(f"shell.cwd must be absolute: {v}")
        return v


class VCSSettings(BaseModel):
    """Version control identity and defaults"""
    author_name: str = 'Aussie Agent'
    author_email: str = 'agent@aussie.os'
    default_branch: str = 'main'
    log_depth: int = 10


class PackageSettings(BaseModel):
    """apm package index"""
    index_url: str = 'https://pypi.org/pypi'
    request_timeout: float = 10.0
    registry_file: str = '/var/lib/apm/packages.json'
    # host modules that scripts may import after `apm install`
    allowed_imports: List[str] = Field(default_factory=list)


class SchedulerSettings(BaseModel):
    """Task scheduler"""
    tick_seconds: float = 1.0
    tasks_file: str = '/workspace/system/schedule.json'
    summary_length: int = 100

    @field_validator('tick_seconds')
    def validate_tick(cls, v):
        if v <= 0:
            raise ValueError("scheduler.tick_seconds must be positive")
        return v


class LoggingSettings(BaseModel):
    """Logging output"""
    level: str = 'INFO'
    file: Optional[str] = None
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class AOSConfig(BaseModel):
    """Top level configuration"""
    vfs: VFSSettings = Field(default_factory=VFSSettings)
    shell: ShellSettings = Field(default_factory=ShellSettings)
    vcs: VCSSettings = Field(default_factory=VCSSettings)
    packages: PackageSettings = Field(default_factory=PackageSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'AOSConfig':
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_yaml(cls, text: str) -> 'AOSConfig':
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML configuration: {e}") from e
        if data is not None and not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")
        return cls.from_dict(data)

    def to_yaml(self) -> str:
        return yaml.dump(self.model_dump(), default_flow_style=False)


def load_config(path: Optional[str] = None) -> AOSConfig:
    """Load configuration from an explicit path, $AOS_CONFIG or the default
    location. A missing default file yields the built-in defaults; a missing
    explicitly requested file is an error."""
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = os.path.expanduser(explicit or DEFAULT_CONFIG_PATH)

    if not os.path.exists(config_path):
        if explicit:
            raise ConfigError(f"Configuration file not found: {config_path}")
        logger.debug("No configuration file, using defaults")
        return AOSConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {config_path}: {e}") from e

    logger.info(f"Loaded configuration from {config_path}")
    return AOSConfig.from_yaml(text)
