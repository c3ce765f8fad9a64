"""
Setup script for resume-pagination project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="resume-pagination",
    version="0.1.0",
    packages=find_packages(include=["src", "src.*", "pagination_service", "pagination_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0",
        "playwright>=1.40",
        "fastapi>=0.110",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
        ],
    },
)
