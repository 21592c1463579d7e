from setuptools import setup, find_packages

setup(
    name="reading-fluency-pipeline",
    version="0.1.0",
    description="Reading fluency metrics, error patterns and word-highlight video rendering",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "pillow>=10.1.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
        "structlog>=23.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "hypothesis>=6.82.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fluency-pipeline=reading_fluency_pipeline.cli:main",
        ],
    },
)
