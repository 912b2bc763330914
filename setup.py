#!/usr/bin/env python3
"""
biosnet Setup Script
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme = Path(__file__).parent / "README.md"
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

# Read requirements
requirements = Path(__file__).parent / "biosnet_requirements.txt"
install_requires = []
if requirements.exists():
    install_requires = requirements.read_text().strip().split('\n')
    install_requires = [r.strip() for r in install_requires if r.strip() and not r.startswith('#')]

setup(
    name="biosnet",
    version="0.1.0",
    description="Trust-graph discovery and ranking for bootstrapping a new chain's genesis configuration",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(include=["biosnet", "biosnet.*"]),
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require={
        "test": [
            "pytest>=8.0.0",
        ],
        "dev": [
            "pytest>=8.0.0",
            "pytest-cov>=4.1.0",
            "black>=24.0.0",
            "flake8>=7.0.0",
            "mypy>=1.8.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Distributed Computing",
    ],
    keywords="blockchain genesis bootstrap ipfs ipns discovery trust-graph",
)
