"""
Setup for Remisiones Backend package.
This makes 'backend' an installable Python package.
"""
from setuptools import setup, find_packages

setup(
    name="remisiones-backend",
    version="1.0.0",
    packages=find_packages(include=["backend", "backend.*"]),
    install_requires=[
        line.strip()
        for line in open('backend/requirements.txt')
        if line.strip() and not line.startswith('#')
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    python_requires=">=3.9",
)
