#!/usr/bin/env python3
"""
Setup script for rtlink
"""

from setuptools import setup, find_packages

setup(
    name="rtlink",
    version="0.1.0",
    description="Client for an authenticated request/response channel over websockets",
    packages=find_packages(include=["rtlink", "rtlink.*"]),
    install_requires=[
        "websockets==15.0",
        "click==8.1.7",
        "typer==0.12.3",
        "rich==13.9.2",
        "PyYAML==6.0.2",
    ],
    extras_require={
        "test": [
            "pytest==8.4.2",
            "pytest-asyncio==1.2.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        'console_scripts': [
            'rtlink=rtlink.cli:main',
        ],
    },
)
