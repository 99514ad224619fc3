from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""
    
    # Application
    APP_NAME: str = "Chat Monitor Dashboard"
    APP_VERSION: str = "1.0.0"
    
    # Database
    DATABASE_URL: str = "sqlite:///./chat_monitor.db"
    CHAT_HISTORY_TABLE: str = "n8n_chat_histories"
    EMPLOYEE_TABLE: str = "n8n_ext_saphr_employee01"
    
    # API
    API_V1_STR: str = "/api/v1"
    
    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    
    # Security
    SECRET_KEY: str = "your-secret-key-here-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ADMIN_ROLES: List[str] = ["admin", "superadmin"]
    
    # SAP HR lookup service
    SAP_API_BASE_URL: str = "http://fiori.sinarmasmining.com:8029"
    SAP_API_PATH: str = "/sap/SMM_API/LMS/USER_SYNC/GET"
    SAP_CLIENT: str = "300"
    SAP_USERNAME: Optional[str] = None
    SAP_PASSWORD: Optional[str] = None
    SAP_TIMEOUT_SECONDS: float = 10.0
    
    # Company code resolution
    COMPANY_LOOKUP_CONCURRENCY: int = 3
    COMPANY_CONTACTS_CONCURRENCY: int = 2
    COMPANY_LOOKUP_DEADLINE_SECONDS: float = 25.0  # below the 30s client timeout
    COMPANY_LOOKUP_MAX_PHONE_NUMBERS: int = 1000
    COMPANY_LOOKUP_USE_DIRECTORY: bool = True
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_JSON: bool = False
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()
