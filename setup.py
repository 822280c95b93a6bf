from setuptools import setup, find_packages

setup(
    name="ldpos-dal",
    version="0.1.0",
    description="Persistence and bookkeeping layer for a delegated proof of stake ledger",
    packages=find_packages(include=["ldpos_dal", "ldpos_dal.*"]),
    install_requires=[
        "pydantic>=2",
        "pydantic-settings",
        "structlog",
        "psycopg2-binary",
        "sqlalchemy>=2",
        "click",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "ldpos-dal=ldpos_dal.cli:cli",
        ],
    }
)
