"""
Setup script for learner-graph.

learner-graph is the persistent learner model behind an adaptive tutor.
It serves three roles:

1. Mastery Tracking - Bayesian belief that a learner knows each concept
2. Review Scheduling - SM-2 intervals for concepts answered correctly
3. Misconception Tracking - Recurring wrong answers and their resolution

The 'learner-graph' command inspects and feeds stored learner profiles.
"""

from setuptools import find_packages, setup

setup(
    name="learner-graph",
    version="1.0.0",
    description="Persistent per-learner knowledge model: mastery, spaced repetition, misconceptions",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="learner-graph contributors",
    packages=find_packages(include=["learner_graph", "learner_graph.*"]),
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
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
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "learner-graph=learner_graph.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition knowledge-tracing education misconceptions",
)
