"""
Configuration file loading.

Loads ``config.yaml`` and an optional ``config.{env}.yaml`` overlay.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from ftpfetch.config.resolver import resolve_config
from ftpfetch.exceptions import ConfigurationError


class Config:
    """ftpfetch configuration container with dict-like access."""

    def __init__(self, data: dict[str, Any]):
        self.data = data
        self.jobs = data.get("jobs", {}) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        keys = key.split(".")
        value = self.data
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-like access: config['key'] or config['nested.key']."""
        if isinstance(key, str) and "." in key:
            return self.get(key)
        if key in self.data:
            value = self.data[key]
            if isinstance(value, dict):
                return Config(value)
            return value
        raise KeyError(f"Config key '{key}' not found")

    def __contains__(self, key: str) -> bool:
        if isinstance(key, str) and "." in key:
            value = self.data
            for k in key.split("."):
                if not isinstance(value, dict) or k not in value:
                    return False
                value = value[k]
            return True
        return key in self.data

    def __iter__(self) -> "Iterator[str]":
        return iter(self.data)

    def job_parameters(self, job_name: str) -> dict[str, Any]:
        """
        Return the parameter map configured for ``jobs.<job_name>``.

        Raises:
            ConfigurationError: If the job is not defined.
        """
        job = self.jobs.get(job_name)
        if not isinstance(job, dict):
            available = ", ".join(sorted(self.jobs)) or "none"
            raise ConfigurationError(
                f"Job '{job_name}' is not defined in config (available: {available})",
                job_name=job_name,
                reason="unknown_job",
            )
        params = job.get("parameters", {}) or {}
        if not isinstance(params, dict):
            raise ConfigurationError(
                f"jobs.{job_name}.parameters must be a mapping, got {type(params).__name__}",
                field="parameters",
                job_name=job_name,
                reason="invalid",
            )
        return dict(params)

    def validate(self) -> None:
        """Validate configuration structure."""
        errors = []

        if not isinstance(self.data, dict):
            raise ConfigurationError(
                f"Configuration must be a dictionary/mapping, got {type(self.data).__name__}", reason="invalid"
            )

        jobs = self.data.get("jobs")
        if jobs is not None and not isinstance(jobs, dict):
            errors.append(f"Configuration 'jobs' must be a dictionary, got {type(jobs).__name__}")

        for section in ("encryption", "transfer", "logging"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"Configuration '{section}' must be a dictionary, got {type(value).__name__}")

        if errors:
            raise ConfigurationError("\n".join(errors), reason="invalid")


def load_config(project_path: Path | None = None, env: str | None = None) -> Config:
    """
    Load ftpfetch configuration.

    Loads config.yaml and config.{env}.yaml, then substitutes environment
    variables.

    Args:
        project_path: Directory holding config.yaml (default: current directory)
        env: Environment name (dev, staging, prod)

    Returns:
        Config instance with merged configuration
    """
    if project_path is None:
        project_path = Path.cwd()

    base_config_path = project_path / "config.yaml"
    if not base_config_path.is_file():
        raise ConfigurationError(
            f"Configuration file not found: {base_config_path}\n"
            f"  Suggestion: Create a config.yaml file in your project root",
            reason="missing",
        )

    config_data = _read_yaml(base_config_path)

    if env:
        env_config_path = project_path / f"config.{env}.yaml"
        if env_config_path.exists():
            _merge_dict(config_data, _read_yaml(env_config_path))

    config = Config(resolve_config(config_data, env or "dev"))
    config.validate()
    return config


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
            raise ConfigurationError(
                f"Error parsing {path.name}{where}:\n  {e}\n  File: {path}", reason="invalid"
            ) from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} must contain a mapping, got {type(data).__name__}", reason="invalid")
    return data


def _merge_dict(base: dict, override: dict):
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
