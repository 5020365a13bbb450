"""Marine Report package installation script."""
from setuptools import setup, find_packages

setup(
    name="marine-report",
    version="1.0.0",
    description="Fault-tolerant aggregator of buoy, tide, wave and sun data for a marine dashboard",
    author="Marine Report Team",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "aiohttp>=3.9.0",
        "aiofiles>=23.1.0",
        "pydantic>=2.0.0",
        "tenacity>=8.2.0",
        "tzdata>=2023.3",
    ],
    extras_require={
        "dev": [
            "ruff>=0.1.0",
            "mypy>=1.0.0",
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pre-commit>=2.15.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "marine-report=marine_report.run:main",
        ],
    },
)
