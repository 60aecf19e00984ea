from setuptools import setup, find_packages

setup(
    name="redikit",
    version="0.1.0",
    description="Redis-backed rate limiting, stampede-safe caching and leaderboards",
    packages=find_packages(include=["redikit", "redikit.*"]),
    python_requires=">=3.11",
    install_requires=[
        "redis>=5.0",
        "pydantic>=2.5",
        "pydantic-settings>=2.3",
        "fastapi>=0.110",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "fakeredis[lua]>=2.23",
            "httpx>=0.27",
        ],
    },
)
