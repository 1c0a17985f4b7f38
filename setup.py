#!/usr/bin/env python3
"""
Setup script for Recovery Fusion - wave scheduling and risk evaluation engine.

This package ranks recovery waves by operational priority, detects scheduling
conflicts between them and produces a go/no-go verdict for disaster-recovery drills.
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Recovery Fusion - wave scheduling and risk evaluation engine"

setup(
    name="recovery-fusion-engine",
    version="1.0.0",
    author="Recovery Fusion Development Team",
    description="Wave scheduling and risk evaluation engine for recovery drills",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['recovery_fusion', 'recovery_fusion.*'],
                           exclude=['*.tests', '*.tests.*']),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Recovery Tools",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        # Core dependencies that are always needed
        "networkx>=3.2.1",
        "numpy>=1.26.3",
        "PyYAML>=6.0.1",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.4",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    package_data={
        "recovery_fusion": [
            "configs/schemas/*.json",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="disaster recovery, incident response, scheduling, risk evaluation",
)
