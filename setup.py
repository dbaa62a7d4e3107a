# setup.py
from setuptools import find_packages, setup

setup(
    name="bad-bitcoin-takes",
    version="0.1.0",
    packages=find_packages(include=["takes", "takes.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "python-multipart>=0.0.9",
        "SQLAlchemy[asyncio]>=2.0",
        "asyncpg>=0.29",
        "psycopg[binary]>=3.1",
        "alembic>=1.13",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "structlog>=24.1",
        "sentry-sdk>=1.40",
        "limits>=3.7",
        "httpx>=0.26",
        "boto3>=1.34",
        "Pillow>=10.2",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "aiosqlite>=0.19",
        ],
    },
)
