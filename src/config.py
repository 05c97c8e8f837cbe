from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "notion-image-mirror"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    log_json: bool = False
    cors_origins: list[str] = ["*"]

    cos_bucket: str | None = None
    cos_region: str | None = None
    cos_secret_id: str | None = None
    cos_secret_key: str | None = None
    cos_public_url: str | None = None
    cos_service: str = "cos"
    cos_domain: str = "myqcloud.com"
    cos_endpoint_url: str | None = None

    optimized_namespace: str = "notion-images"
    foreign_image_hosts: list[str] = ["amazonaws.com", "notion-static.com"]

    fetch_timeout: float = 15.0
    fetch_max_retries: int = 3
    max_fetch_bytes: int = 26214400
    proxies: list[str] = []
    proxy_strategy: str = "round-robin"

    notion_token: str | None = None
    notion_api_url: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"
    notion_page_size: int = 100

    notion_writing_database_id: str | None = None
    notion_stack_database_id: str | None = None
    notion_good_websites_database_id: str | None = None
    notion_music_database_id: str | None = None
    notion_ama_database_id: str | None = None
    notion_design_details_episodes_database_id: str | None = None
    notion_speaking_database_id: str | None = None
    notion_app_dissection_database_id: str | None = None

    @field_validator("cos_public_url")
    @classmethod
    def _ensure_scheme(cls, value: str | None) -> str | None:
        if not value:
            return None
        if not value.startswith("http"):
            value = f"https://{value}"
        return value.rstrip("/")

    @property
    def missing_storage_settings(self) -> list[str]:
        required = {
            "COS_BUCKET": self.cos_bucket,
            "COS_REGION": self.cos_region,
            "COS_SECRET_ID": self.cos_secret_id,
            "COS_SECRET_KEY": self.cos_secret_key,
        }
        return [name for name, value in required.items() if not value]

    @property
    def storage_public_url(self) -> str:
        if self.cos_public_url:
            return self.cos_public_url
        return f"https://{self.cos_bucket}.{self.cos_service}.{self.cos_region}.{self.cos_domain}"


settings = Settings()
