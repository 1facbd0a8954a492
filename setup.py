from setuptools import setup, find_packages

setup(
    name="quiz-session",
    version="0.1.0",
    description="Timed multiple-choice quiz session engine with resumable attempts",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quiz-session=quiz_session.cli:main",
        ],
    },
)
