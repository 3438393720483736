from pydantic import BaseModel, model_validator

from shared.helper.HelperConfig import HelperConfig


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The key/name of the environment variable to read.
        val_type (str): The expected type of the environment variable's value. Supported types are "string", "number" and "bool".
        default (str | int | float | bool | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | None = None


class PipelineConfig(BaseModel):
    """Immutable pipeline tunables, sourced once at process start.

    Attributes:
        chunk_size:                Maximum characters per passage.
        chunk_overlap:             Characters shared by consecutive passages of one page.
        top_k:                     Number of passages retrieved per question.
        max_context_chars:         Character budget of the assembled context.
        context_separator:         String appended after every passage in the context.
        history_aware:             Rewrite follow-up questions using the chat history.
        history_rewrite_min_turns: Minimum number of history turns before a rewrite happens.
        embed_batch_size:          Passages per embedding request during ingestion.
        embed_concurrency:         Embedding requests in flight during one ingestion.
        upsert_batch_size:         Points per vector store upsert request.
    """

    model_config = {"frozen": True}

    chunk_size: int = 1000
    chunk_overlap: int = 200
    top_k: int = 4
    max_context_chars: int = 4000
    context_separator: str = "\n\n"
    history_aware: bool = True
    history_rewrite_min_turns: int = 1
    embed_batch_size: int = 32
    embed_concurrency: int = 4
    upsert_batch_size: int = 100

    @model_validator(mode="after")
    def _check_bounds(self) -> "PipelineConfig":
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive.")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size.")
        if self.top_k <= 0 or self.max_context_chars <= 0:
            raise ValueError("top_k and max_context_chars must be positive.")
        if self.embed_batch_size <= 0 or self.embed_concurrency <= 0 or self.upsert_batch_size <= 0:
            raise ValueError("Batch sizes and concurrency must be positive.")
        return self

    @classmethod
    def from_helper_config(cls, helper_config: HelperConfig) -> "PipelineConfig":
        """Snapshot the pipeline settings from the environment."""
        defaults = cls()
        separator = helper_config.get_string_val("CONTEXT_SEPARATOR", default=defaults.context_separator)
        return cls(
            chunk_size=int(helper_config.get_number_val("CHUNK_SIZE", default=defaults.chunk_size)),
            chunk_overlap=int(helper_config.get_number_val("CHUNK_OVERLAP", default=defaults.chunk_overlap)),
            top_k=int(helper_config.get_number_val("TOP_K", default=defaults.top_k)),
            max_context_chars=int(helper_config.get_number_val("MAX_CONTEXT_CHARS", default=defaults.max_context_chars)),
            # allow escaped newlines in .env files
            context_separator=separator.encode("utf-8").decode("unicode_escape"),
            history_aware=helper_config.get_bool_val("HISTORY_AWARE", default=defaults.history_aware),
            history_rewrite_min_turns=int(
                helper_config.get_number_val("HISTORY_REWRITE_MIN_TURNS", default=defaults.history_rewrite_min_turns)
            ),
            embed_batch_size=int(helper_config.get_number_val("EMBED_BATCH_SIZE", default=defaults.embed_batch_size)),
            embed_concurrency=int(helper_config.get_number_val("EMBED_CONCURRENCY", default=defaults.embed_concurrency)),
            upsert_batch_size=int(helper_config.get_number_val("UPSERT_BATCH_SIZE", default=defaults.upsert_batch_size)),
        )
