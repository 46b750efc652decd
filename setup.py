#!/usr/bin/env python3
"""
Setup script for the Kaleido document store sample client
"""

from setuptools import setup, find_namespace_packages

setup(
    name="docstore-client",
    version="0.0.1",
    description="Socket.IO and REST sample client for the Kaleido document store",
    packages=find_namespace_packages(include=["docstore", "docstore.*", "shared", "shared.*"]),
    install_requires=[
        "python-socketio>=5.11",
        "aiohttp>=3.9,<3.14",
        "click>=8.1.7",
        "typer>=0.12.3",
        "rich>=13.9.2",
        "tqdm>=4.66.5",
    ],
    extras_require={
        "test": [
            "pytest>=8.4.2",
            "pytest-asyncio>=1.2.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        'console_scripts': [
            'docstore=docstore.cli:main',
        ],
    },
)
