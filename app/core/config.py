from typing import List, Union

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="AI Quizzer")
    app_description: str = Field(
        default="AI-powered quiz generation, grading and adaptive learning backend"
    )
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=True)
    production: bool = Field(default=False)

    # Database Configuration
    # DATABASE_URL wins over the individual db_* fields when set
    database_url: str = Field(default="")
    db_host: str = Field(default="127.0.0.1")
    db_port: int = Field(default=5432)
    db_database: str = Field(default="ai_quizzer")
    db_username: str = Field(default="postgres")
    db_password: str = Field(default="postgres")

    # Security Settings
    # Union keeps pydantic-settings from JSON-decoding the comma-separated value
    cors_allowed_origins: Union[List[str], str] = Field(default=["*"])
    password_hash_rounds: int = Field(default=12)

    # JWT Configuration
    jwt_secret: str = Field(default="your-secret-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_user_expiration: int = Field(default=7)
    jwt_refresh_expiration: int = Field(default=30)
    jwt_issuer: str = Field(default="ai-quizzer-backend")
    jwt_audience: str = Field(default="ai-quizzer-users")

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_storage_uri: str = Field(default="memory://")
    rate_limit_default: str = Field(default="100/15minutes")
    quiz_generation_rate_limit: str = Field(default="5/minute")
    submission_rate_limit: str = Field(default="10/minute")

    # AI Service
    ai_api_key: str = Field(default="")
    ai_api_endpoint: str = Field(default="")
    ai_model: str = Field(default="")
    ai_request_timeout: float = Field(default=30.0)
    ai_max_retries: int = Field(default=0)

    # Quiz Defaults
    default_max_attempts: int = Field(default=3)
    default_total_questions: int = Field(default=10)
    max_sample_questions: int = Field(default=10)
    adaptive_history_limit: int = Field(default=10)

    # Authentication
    auth_auto_register: bool = Field(default=False)
    default_grade_level: int = Field(default=8)

    # Logging
    log_level: str = Field(default="")  # Empty: DEBUG when debug, else INFO
    log_file: str = Field(default="logs/app.log")

    # Pagination
    default_page_size: int = Field(default=10)
    max_page_size: int = Field(default=100)

    # ============================
    # Generic comma-separated parser
    # ============================
    @staticmethod
    def _parse_csv(value, default):
        if isinstance(value, str):
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default
        if isinstance(value, list):
            return value
        return default

    @field_validator("cors_allowed_origins", mode="before")
    def validate_cors(cls, v):
        return cls._parse_csv(v, ["*"])

    @property
    def sqlalchemy_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return "postgresql+psycopg2://{user}:{password}@{host}:{port}/{database}".format(
            user=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        )

    @property
    def ai_enabled(self) -> bool:
        return bool(self.ai_api_key and self.ai_api_endpoint and self.ai_model)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings():
    try:
        settings = Settings()
        print("✅ Settings loaded successfully!")
        return settings
    except ValidationError as e:
        print("❌ Validation Error:", e)
        raise


settings = load_settings()
