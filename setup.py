from setuptools import setup, find_packages

setup(
    name="recurring-pattern-engine",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0.0",
        "numpy>=1.24.0",
        "typing_extensions>=4.5.0",
    ],
    extras_require={
        "dev": [
            "mypy>=1.0.0",
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "isort>=5.0.0",
            "flake8>=6.0.0"
        ]
    }
)
