"""Developer command wrappers (see [project.scripts] in pyproject.toml)."""
