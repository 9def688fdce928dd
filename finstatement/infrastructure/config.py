"""
Configuration for finstatement.

Settings come from config/settings.yaml, an optional per-environment overlay
(settings.{env}.yaml) and environment variables, and are exposed as typed
pydantic models. API keys are read from the environment or a .env file.

Usage:
    from finstatement.infrastructure.config import get_config

    config = get_config()
    top_k = config.settings.vector_index.top_k
    llm_timeout = config.settings.llm.timeout
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from ..core.exceptions import ConfigurationError


# =============================================================================
# Environment Definition
# =============================================================================

class Environment(Enum):
    """Environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


# =============================================================================
# Pydantic Config Models (for type-safe access)
# =============================================================================

class LLMConfig(BaseModel):
    """Configuration for the language-model client."""
    provider: str = Field(default="openai")
    model: Optional[str] = Field(default=None)
    temperature: float = Field(default=0.0)
    max_tokens: int = Field(default=4096)
    timeout: float = Field(default=60.0)
    max_retries: int = Field(default=2)


class EmbeddingConfig(BaseModel):
    """Configuration for query embeddings."""
    model: str = Field(default="text-embedding-3-large")
    timeout: float = Field(default=30.0)


class VectorIndexConfig(BaseModel):
    """Configuration for the Qdrant vector index."""
    host: str = Field(default="localhost")
    port: int = Field(default=6333)
    api_key: Optional[str] = Field(default=None)
    collection_name: str = Field(default="filing_elements")
    top_k: int = Field(default=5, ge=1)
    timeout: float = Field(default=30.0)


class PipelineConfig(BaseModel):
    """Configuration for the extraction pipeline."""
    selection_retries: int = Field(default=1, ge=0, le=1)
    enforce_numeric_fidelity: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = Field(default="INFO")


class TracingSettings(BaseModel):
    """Configuration for OpenTelemetry tracing."""
    enabled: bool = Field(default=False)
    service_name: str = Field(default="finstatement")
    otlp_endpoint: str = Field(default="http://localhost:4317")


class Settings(BaseModel):
    """Main settings container."""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    embeddings: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_index: VectorIndexConfig = Field(default_factory=VectorIndexConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tracing: TracingSettings = Field(default_factory=TracingSettings)


class EnvSettings(BaseSettings):
    """Environment variable settings."""
    openai_api_key: Optional[str] = Field(default=None)
    deepseek_api_key: Optional[str] = Field(default=None)
    kimi_api_key: Optional[str] = Field(default=None)
    qdrant_api_key: Optional[str] = Field(default=None)
    finstatement_env: str = Field(default="development")
    log_level: Optional[str] = Field(default=None)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# =============================================================================
# Environment overrides
# =============================================================================

def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# (environment variable, dotted settings key, converter)
ENV_OVERRIDES: list[tuple[str, str, Callable[[str], Any]]] = [
    ("FINSTATEMENT_LLM_PROVIDER", "llm.provider", str),
    ("FINSTATEMENT_LLM_MODEL", "llm.model", str),
    ("FINSTATEMENT_LLM_TIMEOUT", "llm.timeout", float),
    ("FINSTATEMENT_EMBEDDING_MODEL", "embeddings.model", str),
    ("QDRANT_HOST", "vector_index.host", str),
    ("QDRANT_PORT", "vector_index.port", int),
    ("FINSTATEMENT_COLLECTION", "vector_index.collection_name", str),
    ("FINSTATEMENT_TOP_K", "vector_index.top_k", int),
    ("FINSTATEMENT_SELECTION_RETRIES", "pipeline.selection_retries", int),
    ("FINSTATEMENT_ENFORCE_NUMERIC_FIDELITY", "pipeline.enforce_numeric_fidelity", _as_bool),
    ("FINSTATEMENT_LOG_LEVEL", "logging.level", str),
    ("FINSTATEMENT_TRACING_ENABLED", "tracing.enabled", _as_bool),
    ("OTEL_EXPORTER_OTLP_ENDPOINT", "tracing.otlp_endpoint", str),
]


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Merge `overlay` into `base` in place; nested dicts merge, everything else replaces."""
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


# =============================================================================
# AppConfig
# =============================================================================

class AppConfig:
    """
    Settings for one process.

    Layers, lowest precedence first:
    1. config/settings.yaml
    2. config/settings.{env}.yaml
    3. Environment variables (ENV_OVERRIDES) and API keys from .env
    """

    def __init__(self, env: Optional[str] = None, config_dir: Optional[Path] = None):
        """
        Args:
            env: Environment name. Defaults to FINSTATEMENT_ENV, then 'development'.
            config_dir: Directory holding the settings YAML files. Defaults to <root>/config.
        """
        self._env_settings = EnvSettings()
        try:
            self._environment = Environment(env or self._env_settings.finstatement_env)
        except ValueError:
            self._environment = Environment.DEVELOPMENT

        self._config_dir = Path(config_dir) if config_dir else get_project_root() / "config"
        self._config = self._load()
        self._settings = Settings(**self._config)

    def _load(self) -> dict[str, Any]:
        config = _read_yaml(self._config_dir / "settings.yaml")
        _deep_merge(config, _read_yaml(self._config_dir / f"settings.{self._environment.value}.yaml"))

        for env_var, key, convert in ENV_OVERRIDES:
            value = os.getenv(env_var)
            if value:
                self._set(config, key, convert(value))

        if self._env_settings.qdrant_api_key:
            self._set(config, "vector_index.api_key", self._env_settings.qdrant_api_key)
        if self._env_settings.log_level and not os.getenv("FINSTATEMENT_LOG_LEVEL"):
            self._set(config, "logging.level", self._env_settings.log_level)
        return config

    @staticmethod
    def _set(config: dict, key: str, value: Any) -> None:
        *parents, leaf = key.split(".")
        for part in parents:
            config = config.setdefault(part, {})
        config[leaf] = value

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def is_production(self) -> bool:
        return self._environment == Environment.PRODUCTION

    @property
    def settings(self) -> Settings:
        """Typed settings."""
        return self._settings

    @property
    def openai_api_key(self) -> Optional[str]:
        """OpenAI API key from the environment or .env file."""
        return self._env_settings.openai_api_key

    def llm_api_key(self, provider: Optional[str] = None) -> Optional[str]:
        """
        API key for an LLM provider from the environment or .env file.

        Args:
            provider: openai, deepseek or kimi. Defaults to the configured provider.
        """
        provider = provider or self._settings.llm.provider
        return getattr(self._env_settings, f"{provider}_api_key", None)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a raw value by dotted key.

        Args:
            key: Config key (e.g., 'vector_index.top_k').
            default: Returned when any part of the key is missing.
        """
        value: Any = self._config
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def validate(self, settings: Optional[Settings] = None) -> list[str]:
        """
        Check settings that pydantic alone cannot.

        Args:
            settings: Settings to check instead of this config's own (e.g. a
                copy with command-line overrides applied).

        Returns:
            Problems found (empty if valid).
        """
        s = settings or self._settings
        errors = []

        if s.llm.temperature != 0:
            errors.append(f"LLM temperature must be 0 for deterministic extraction (got {s.llm.temperature})")
        if s.llm.provider not in ("openai", "deepseek", "kimi"):
            errors.append(f"Unknown LLM provider: {s.llm.provider}")
        for name, timeout in (("llm", s.llm.timeout), ("embeddings", s.embeddings.timeout),
                              ("vector_index", s.vector_index.timeout)):
            if timeout <= 0:
                errors.append(f"Invalid {name} timeout: {timeout}")
        if self.is_production and not s.vector_index.api_key:
            errors.append("Production requires a Qdrant API key")

        return errors

    def require_valid(self, settings: Optional[Settings] = None) -> None:
        """
        Raise if validate() finds any problem.

        Raises:
            ConfigurationError: With the problems in its context.
        """
        errors = self.validate(settings)
        if errors:
            raise ConfigurationError(f"Invalid settings: {'; '.join(errors)}", {"errors": errors})


# =============================================================================
# Accessors
# =============================================================================

_config: Optional[AppConfig] = None


def get_project_root() -> Path:
    """Directory holding both config/ and the finstatement package, else the cwd."""
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "config").is_dir() and (parent / "finstatement").is_dir():
            return parent
    return Path.cwd()


def get_config(env: Optional[str] = None) -> AppConfig:
    """
    Process-wide AppConfig, created on first use.

    Args:
        env: Rebuild for this environment instead of returning the cached instance.
    """
    global _config
    if _config is None or env is not None:
        _config = AppConfig(env=env)
    return _config


def get_settings() -> Settings:
    """Typed settings of the process-wide AppConfig."""
    return get_config().settings
