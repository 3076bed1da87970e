from setuptools import setup, find_packages

setup(
    name="beeminer-backend",
    version="1.0.0",
    description="BeeMiner idle game economy backend",
    author="jetgause",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["api_server", "config", "setup_env"],
    install_requires=[
        "fastapi>=0.104.0",
        "uvicorn>=0.24.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "SQLAlchemy>=2.0.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
    python_requires=">=3.8",
)
