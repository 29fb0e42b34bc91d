[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "htmlshot"
version = "0.1.22"
description = "Capture screenshots of HTML content through the Chrome DevTools Protocol."
requires-python = ">=3.10"
dependencies = [
    "websockets",
]
keywords = ["html", "screenshot", "cdp", "html-to-image", "chrome", "devtools"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Multimedia :: Graphics :: Capture :: Screen Capture",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["htmlshot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
