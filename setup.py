#!/usr/bin/env python3
"""
Setup script for AI Chess.

A terminal chess game where a human plays against, or watches, LLM-backed
agents that keep a persistent working memory of their strategic assessments.
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8') if (this_directory / "README.md").exists() else ""

# Read version from package
version_file = this_directory / "ai_chess" / "__init__.py"
version = "1.0.0"  # Default version
if version_file.exists():
    with open(version_file, encoding='utf-8') as f:
        for line in f:
            if line.startswith('__version__'):
                version = line.split('=')[1].strip().strip('"').strip("'")
                break

setup(
    name="ai-chess",
    version=version,
    description="Terminal chess against LLM agents with persistent working memory",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="AI Chess Team",
    author_email="ai-chess@example.com",

    # Package discovery
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",

    # Dependencies
    install_requires=[
        "chess>=1.10.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
    ],

    # Optional dependencies
    extras_require={
        "openai": ["openai>=1.0.0"],
        "anthropic": ["anthropic>=0.30.0"],
        "gemini": ["google-generativeai>=0.8.0"],
        "ag2": ["ag2[openai]>=0.9.0"],
        "all": [
            "openai>=1.0.0",
            "anthropic>=0.30.0",
            "google-generativeai>=0.8.0",
            "ag2[openai]>=0.9.0",
        ],
        "test": [
            "pytest>=7.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "mypy>=1.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "isort>=5.0.0",
        ],
    },

    # Entry points for CLI
    entry_points={
        "console_scripts": [
            "ai-chess=ai_chess.cli:main",
        ],
    },

    # Classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Games/Entertainment :: Board Games",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Framework :: AsyncIO",
    ],

    # Keywords
    keywords=[
        "chess",
        "llm",
        "agents",
        "working-memory",
        "anthropic",
        "openai",
        "gemini",
        "terminal",
        "game-playing",
    ],

    zip_safe=False,
)
