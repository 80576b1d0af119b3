"""
Repository Browser setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="repobrowser",
    version="2.0.0",
    description="Repository Browser — aggregated OSGi update sites with p2 metadata",
    packages=find_packages(include=["repobrowser", "repobrowser.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "repobrowser=repobrowser.cli:main",
        ],
    },
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
