"""
Setup script for arivom-learning-engine.

The Arivom learning engine adapts study to each learner:

1. Mastery Tracking - Per-topic mastery from quiz results
2. Adaptive Quizzes - Difficulty matched to mastery, generated by Gemini
3. Course Q&A - Retrieval over uploaded course materials (RAG)
4. Replanning - Remedial review tasks injected into the study plan

The 'arivom' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="arivom-learning-engine",
    version="1.0.0",
    description="Adaptive learning and retrieval engine for course mastery, quizzes and study plans",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Arivom",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.12.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Embeddings & Generation
        "numpy>=1.24.0",
        "google-generativeai>=0.5.0",
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
        "local-embeddings": [
            "sentence-transformers>=2.2.0",
        ],
        "postgres": [
            "psycopg2-binary>=2.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "arivom=arivom.cli.main:app",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning adaptive-quiz rag mastery education",
)
