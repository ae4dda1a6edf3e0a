# Package installation script

from setuptools import setup, find_packages

setup(
    name="telemetry_gateway",
    version="0.1.0",
    packages=find_packages(where="src", exclude=["tests", "tests.*"]),
    package_dir={"": "src"},
    entry_points={
        "console_scripts": [
            "telemetry_gateway=telemetry_gateway.__main__:main",
        ],
    },
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "hypercorn",
        "pyyaml",
        "aiosqlite",
        "pydantic>=2",
        "pyserial",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
        "dev": [
            "uvicorn",
        ],
    },
)
