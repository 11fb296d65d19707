#!/usr/bin/env python
"""
AOS - Aussie OS kernel: virtual filesystem, shell, version control bridge and task scheduler
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Define required packages
required_packages = [
    "pydantic>=2.5.0",  # For data validation and settings management
    "requests>=2.28.0", # For package index lookups
    "pyyaml>=6.0",      # For configuration file support
    "rich>=13.5.0",     # For rich terminal output
    "cachetools>=5.5.2", # For caching functionality
]

setup(
    name="aos-core",
    version="2.1.0",
    description="Persistent virtual filesystem, command shell, version control bridge and task scheduler",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "aos=aos.cli:main",
        ],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
)
