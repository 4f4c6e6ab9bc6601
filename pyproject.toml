[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "users_service"
version = "0.1.0"
description = "HTTP service for storing users, their names and profile pictures"
requires-python = ">=3.10"
keywords = ["users", "http", "rest", "flask", "sqlalchemy", "microservice"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "sqlalchemy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
users-service = "users_service.server:main"

[tool.hatch.build.targets.wheel]
packages = ["users_service"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
