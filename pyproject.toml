[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mediacommon"
version = "0.1.0"
description = "Parsers and helpers for AC-3, AV1, G.711 and H.264 bitstreams"
requires-python = ">=3.10"
dependencies = []
keywords = ["h264", "av1", "ac3", "g711", "bitstream", "sps", "annex-b", "avcc", "leb128", "dts"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mediacommon"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
