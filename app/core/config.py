from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str

    SECRET_KEY: str
    ENV: str = "dev"  # "dev" or "prod"

    # --- EMAIL SETTINGS ---
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 2525  # Default to Mailtrap port
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_TIMEOUT_SECONDS: float = 10.0
    EMAILS_FROM_EMAIL: str = "no-reply@college-governance.local"
    EMAILS_FROM_NAME: str = "College Governance"
    FRONTEND_URL: str = "http://localhost:5173" # For login link

    # --- FACULTY PROVISIONING ---
    TEMP_PASSWORD_LENGTH: int = 12
    BULK_UPLOAD_MAX_ROWS: int = 500
    BULK_UPLOAD_TIMEOUT_SECONDS: float = 120.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
