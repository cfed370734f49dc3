"""
Setup script for kaqui-srs.

kaqui schedules Japanese kana, kanji and vocabulary quizzes with a
two-score spaced repetition model:

1. Scheduler - forgetting probabilities and score updates
2. Quiz engine - question picks, similar-item distractors, session history
3. Terminal quizzes - the 'kaqui' command

The 'kaqui' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="kaqui-srs",
    version="1.0.0",
    description="Spaced repetition quizzes for Japanese kana, kanji and words",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
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
        ],
    },
    entry_points={
        "console_scripts": [
            "kaqui=kaqui.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="japanese kanji kana spaced-repetition quiz cli",
)
