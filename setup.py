"""Setup script for dbexport."""

from setuptools import find_packages, setup

setup(
    name="dbexport",
    version="0.1.0",
    description="Streaming CSV export of relational tables and SELECT queries",
    author="dbexport Team",
    packages=find_packages(include=["dbexport", "dbexport.*"]),
    install_requires=[
        "sqlalchemy>=2.0.0",  # Engine, connection pool, catalog introspection
        "psycopg2-binary>=2.9.0",  # PostgreSQL driver
        "typer>=0.9.0",  # CLI framework
        "rich>=13.0.0",  # CLI output formatting
        "pyyaml>=6.0",  # Profile configuration
        "python-dotenv>=1.0.0",  # .env loading for credentials
    ],
    extras_require={
        "mysql": [
            "pymysql>=1.0.0",  # Unbuffered MySQL cursors
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
            "black>=22.1.0",
            "isort>=5.10.1",
            "flake8>=4.0.1",
            "mypy>=1.0.0",  # Type checking
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dbexport=dbexport.cli.main:cli",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
