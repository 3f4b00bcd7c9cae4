from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # ===== ENTORNO =====
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # ===== DATABASE =====
    database_url: str = Field(default="sqlite:///./data/gestion_insumos.db")

    # ===== CORS =====
    allowed_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    # ===== LOGGING =====
    log_dir: str = Field(default="logs")
    log_level: str = Field(default="INFO")

    # ===== INVENTARIO =====
    # False: un egreso que deja stock negativo (o sin fila de stock) se rechaza
    permitir_stock_negativo: bool = Field(default=False)
    dias_alerta_vencimiento: int = Field(default=30, ge=0)

    # ===== PAGINACIÓN =====
    page_size_max: int = Field(default=100, ge=1)

    @field_validator("log_level", mode="after")
    @classmethod
    def normalizar_nivel(cls, v: str) -> str:
        return v.strip().upper() or "INFO"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
