[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distill"
version = "0.1.0"
description = "Context distillation for LLM prompts: LRU caching, cache-prefix partitioning and stability checks, clustering, MMR re-ranking and semantic deduplication."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "llm",
    "rag",
    "prompt-caching",
    "deduplication",
    "clustering",
    "mmr",
    "embeddings",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["distill"]

[tool.hatch.build.targets.sdist]
include = ["distill", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
