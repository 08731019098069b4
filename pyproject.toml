[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "questionhub"
version = "0.0.1"
description = "Question-and-answer HTTP service with a gRPC answer server, in-memory or SQL storage and a Redis-backed answer cache."
requires-python = ">=3.11"
keywords = ["rest", "http", "grpc", "questions", "aiohttp", "redis", "sqlalchemy"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "aiohttp",
    "redis",
    "sqlalchemy",
    "grpcio",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
questionhub-public = "questionhub.public_server:main"
questionhub-answer = "questionhub.answer_server:main"

[tool.hatch.build.targets.wheel]
packages = ["questionhub"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
