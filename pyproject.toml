[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netopconf"
version = "0.1.0"
description = "Validation, defaulting and change-safety checks for cluster network operator configuration"
requires-python = ">=3.10"
keywords = ["networking", "cluster", "cni", "kube-proxy", "sdn", "multus", "kuryr", "ipam", "mtu"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["netopconf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
