"""
Setup script for the Catalyst provider fallback service.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="catalyst-providers",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["version"],
    python_requires=">=3.11",
    install_requires=[
        "pydantic[email]>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "httpx>=0.27",
        "google-genai>=1.0",
        "langchain-core>=0.3",
        "langchain-openai>=0.2",
        "openai>=1.40",
        "tenacity>=8.2",
        "json-repair>=0.25",
        "pymongo>=4.6",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
