"""Configuration management for the knowledge base using Hydra.

Configuration is loaded from YAML files in conf/knowledge_base/ with
credentials interpolated from the environment. Loading never validates that
credentials are present; that check belongs to client construction so a
missing key surfaces on first use, named, instead of at import time.
"""

from pathlib import Path

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, Field

from knowledge_backend.embedding import EmbeddingConfig


class IndexConfig(BaseModel):
    """Vector index configuration.

    Attributes:
        index_name: Name of the Pinecone index
        api_key: Pinecone API key
        host: Pinecone index host (data-plane URL)
        namespace: Optional namespace inside the index
    """

    index_name: str = "cleopatra"
    api_key: str | None = None
    host: str | None = None
    namespace: str | None = None


class ServerConfig(BaseModel):
    """Network settings for the HTTP transports."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = "INFO"


class KnowledgeBaseSettings(BaseModel):
    """Top-level configuration for the knowledge base.

    Attributes:
        embedding: Embedding model configuration
        index: Vector index configuration
        server: Transport configuration
    """

    embedding: EmbeddingConfig
    index: IndexConfig
    server: ServerConfig = Field(default_factory=ServerConfig)

    def missing_required(self) -> list[str]:
        """Return the environment variable names of required settings that are unset."""
        required = [
            ("OPENAI_API_KEY", self.embedding.api_key),
            ("PINECONE_API_KEY", self.index.api_key),
            ("PINECONE_HOST", self.index.host),
        ]
        return [name for name, value in required if not value]


def _default_config_dir() -> Path:
    repo_root = Path(__file__).parent.parent.parent
    return repo_root / "conf" / "knowledge_base"


def load_settings(
    config_name: str = "default",
    config_path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> KnowledgeBaseSettings:
    """Load knowledge base configuration from Hydra YAML files.

    Args:
        config_name: Name of config file (without .yaml extension)
        config_path: Path to config directory (defaults to conf/knowledge_base/)
        overrides: List of config overrides (e.g., ["index.namespace=agents"])

    Returns:
        Validated configuration object

    Raises:
        FileNotFoundError: If an explicit config directory does not exist

    Example:
        >>> settings = load_settings("default", overrides=["server.port=9000"])
        >>> settings.embedding.dimensions
        512
    """
    if config_path is None:
        config_path = _default_config_dir()
        if not config_path.exists():
            # Installed without the repository checkout; fall back to built-in defaults
            cfg = OmegaConf.create(create_default_config())
            if overrides:
                cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(overrides))
            return KnowledgeBaseSettings(**OmegaConf.to_container(cfg, resolve=True))  # type: ignore[arg-type]

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config directory not found: {config_path}\n" f"Create it with: mkdir -p {config_path}"
        )

    with initialize_config_dir(
        config_dir=str(config_path), version_base=None, job_name="knowledge_base"
    ):
        cfg: DictConfig = compose(config_name=config_name, overrides=overrides or [])

    config_dict = OmegaConf.to_container(cfg, resolve=True)
    return KnowledgeBaseSettings(**config_dict)  # type: ignore[arg-type]


def create_default_config() -> dict[str, dict[str, object]]:
    """Create the default configuration dictionary.

    Mirrors conf/knowledge_base/default.yaml and is used when that file is
    not shipped alongside the package.
    """
    return {
        "embedding": {
            "model": "openai/text-embedding-3-small",
            "dimensions": 512,
            "timeout_seconds": 30.0,
            "api_key": "${oc.env:OPENAI_API_KEY,null}",
        },
        "index": {
            "index_name": "cleopatra",
            "namespace": None,
            "api_key": "${oc.env:PINECONE_API_KEY,null}",
            "host": "${oc.env:PINECONE_HOST,null}",
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8000,
            "log_level": "INFO",
        },
    }
