class DefaultConfig:
    """Default runtime configuration for the dorgu CLI."""
    # LLM Configuration (persona enrichment)
    LLM_PROVIDER: str = "openai"
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 4000
    LLM_TIMEOUT: int = 60

    # Logging Configuration
    LOG_LEVEL: str = "WARNING"
    LOG_FILE: str = "dorgu.log"
    LOG_TO_CONSOLE: bool = True
    LOG_TO_FILE: bool = False
    LOG_STRUCTURED_JSON: bool = False

    # Configuration file locations
    CONFIG_FILE_NAME: str = ".dorgu.yaml"
    GLOBAL_CONFIG_DIR: str = "dorgu"
    GLOBAL_CONFIG_FILE_NAME: str = "config.yaml"

    # Generation defaults
    OUTPUT_DIR: str = "./k8s"
