[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ctf01d"
version = "0.1.0"
description = "Server building blocks for a CTF game platform: configuration, password helpers, SPA serving, session authentication and schema updates"
requires-python = ">=3.10"
keywords = ["ctf", "wsgi", "migrations", "spa", "sessions", "bcrypt"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware",
]
dependencies = [
    "pyyaml",
    "bcrypt",
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ctf01d"]

[tool.pytest.ini_options]
addopts = "-ra"
