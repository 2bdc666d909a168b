from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    app_name: str = "Carousel Renderer"

    # Assets
    fonts_path: str = "assets/fonts"

    # Export
    output_dir: str = "generated_images"
    export_width: int = 1080  # Set via EXPORT_WIDTH env var

    # Image loading
    image_fetch_timeout: float = 30.0
    max_image_bytes: int = 20 * 1024 * 1024
    # Local file references are only served from inside this directory; unset disables them
    local_images_path: Optional[str] = None

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
