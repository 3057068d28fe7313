[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ghcrawler"
version = "0.1.0"
description = "Crawl GitHub repositories through the GraphQL API and store their star counts in PostgreSQL"
requires-python = ">=3.10"
keywords = ["github", "crawler", "graphql", "postgresql", "repositories"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
]
dependencies = [
    "httpx>=0.27",
    "sqlalchemy>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=8",
    "pytest-asyncio>=0.23",
    "respx>=0.21",
]

[project.scripts]
ghcrawler = "ghcrawler.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ghcrawler"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
