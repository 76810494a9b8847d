from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional


class Settings(BaseSettings):
    # Server
    port: int = 5000
    log_level: str = "INFO"

    # Database Configuration
    database_url: Optional[str] = None
    db_username: Optional[str] = None
    db_password: Optional[str] = None
    db_host: str = "localhost"
    db_port: str = "5432"
    db_name: Optional[str] = None
    force_migrate: bool = False

    # Authentication
    nextauth_secret: str = "kardexcare-dev-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: Optional[int] = 60

    # Frontend origin allowed by CORS
    next_public_api_url: Optional[str] = None

    # Uploaded images/documents
    storage_root: str = "./storage"

    @field_validator('jwt_algorithm', mode='before')
    @classmethod
    def parse_algorithm(cls, v):
        if v is None or v == '':
            return "HS256"
        return v

    @field_validator('access_token_expire_minutes', mode='before')
    @classmethod
    def parse_token_expire(cls, v):
        if v is None or v == '':
            return 60
        return int(v)

    @field_validator('log_level', mode='before')
    @classmethod
    def parse_log_level(cls, v):
        if v is None or v == '':
            return "INFO"
        return str(v).upper()

    @property
    def database_connection_url(self) -> str:
        """Build database URL from individual components or use direct URL"""
        if all([self.db_username, self.db_password, self.db_host, self.db_port, self.db_name]):
            return f"postgresql://{self.db_username}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        elif self.database_url:
            return self.database_url
        else:
            return "sqlite:///./kardexcare.db"

    @property
    def cors_origins(self) -> list:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
        if self.next_public_api_url and self.next_public_api_url not in origins:
            origins.append(self.next_public_api_url.rstrip("/"))
        return origins

    class Config:
        env_file = ".env"


settings = Settings()
