from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    openai_api_key: str = ""  # required for analysis, checked per call
    openai_model: str = "gpt-4o"
    openai_base_url: str | None = None
    max_tokens: int = 1000
    temperature: float = 0.8
    top_p: float = 0.4
    image_detail: str = "high"
    request_timeout_seconds: float = 60.0
    host: str = "0.0.0.0"
    port: int = 3000
    upload_dir: str = "./uploads"
    max_upload_size_bytes: int = 10 * 1024 * 1024  # 10MB
    allowed_mime_types: list[str] = ["image/jpeg", "image/jpg", "image/png"]
    repair_cost_currency: str = "THB"
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
