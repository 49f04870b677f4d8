from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = ""
    default_model: str = "google/gemini-2.0-flash-lite-preview-02-05:free"
    include_reasoning: bool = True
    llm_max_tokens: int = 8192
    llm_temperature: float = 0.0

    # Search provider
    search_provider: str = "bing"  # bing | brave | tavily
    search_fallback_provider: str = ""  # optional second provider, same choices
    bing_api_key: str = ""
    bing_endpoint: str = "https://api.bing.microsoft.com/v7.0/search"
    brave_api_key: str = ""
    tavily_api_key: str = ""
    search_results_per_query: int = 5
    search_timeout_seconds: float = 30.0
    search_max_query_chars: int = 400

    # Research budgets
    research_default_breadth: int = 3
    research_default_depth: int = 2
    research_max_breadth: int = 10
    research_max_depth: int = 5
    research_learnings_per_query: int = 3
    research_max_parallel_queries: int = 1

    # Outbound stream
    stream_format: str = "text"  # text | sse
    think_open_marker: str = "<think>"
    think_close_marker: str = "</think>"

    # Plain chat route
    chat_temperature: float = 0.7
    chat_max_tokens: int = 1000

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_to_file: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    def clamp_breadth(self, value: int | None) -> int:
        if value is None:
            value = self.research_default_breadth
        return min(max(int(value), 1), max(self.research_max_breadth, 1))

    def clamp_depth(self, value: int | None) -> int:
        if value is None:
            value = self.research_default_depth
        return min(max(int(value), 1), max(self.research_max_depth, 1))


settings = Settings()
