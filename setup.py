"""
MeetingTranscriber v1: setuptools build script.

Usage:
    # Development install (links to source):
    pip install -e .[test]

    # Run:
    meetscribe --language en chunk-1.webm chunk-2.webm
"""

from setuptools import setup, find_namespace_packages

APP_NAME = "MeetingTranscriber"

setup(
    name=APP_NAME,
    version="1.0.0",
    description="Chunked meeting speech-to-text with a local whisper.cpp pipeline",
    packages=find_namespace_packages(include=["meetscribe", "meetscribe.*"]),
    py_modules=["main"],
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "meetscribe=main:main",
        ],
    },
)
