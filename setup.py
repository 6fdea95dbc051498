"""
Setup script for study-notes-engine.

The study-notes engine is the scheduling and diagnosis backend of a
study-notes app. It serves three roles:

1. Mastery Update Engine - SM-2 rescheduling of concepts after each review
2. Gap Priority Scorer - Ranking of diagnosed knowledge gaps per note
3. Review API - HTTP and terminal front doors for both

The 'studynotes' command is the CLI entry point; the HTTP API is served
with 'studynotes serve' or 'python main.py'.
"""

from setuptools import find_packages, setup

setup(
    name="study-notes-engine",
    version="1.0.0",
    description="Spaced repetition and knowledge gap engine for a study-notes app",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        # HTTP (TestClient transport)
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "studynotes=studynotes.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Framework :: FastAPI",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition sm2 knowledge-gaps education",
)
