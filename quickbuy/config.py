import os
from quickbuy.services.courier import DEFAULT_ORIGIN_ADDRESS, DEFAULT_RATE_PER_KM

class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URL = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    LOGIN_LIMIT_PER_IP = os.getenv("LOGIN_LIMIT_PER_IP", "10 per 30 minutes")
    CHECKOUT_LIMIT_PER_IP = os.getenv("CHECKOUT_LIMIT_PER_IP", "20 per hour")
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-insecure-jwt-key")
    ACCESS_TOKEN_LIFETIME_MIN = int(os.getenv("ACCESS_TOKEN_LIFETIME_MIN", 15))
    REFRESH_TOKEN_LIFETIME_DAYS = int(os.getenv("REFRESH_TOKEN_LIFETIME_DAYS", 30))
    OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "quickbuy")
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
    OTEL_TRACES_SAMPLE_RATIO = float(os.getenv("OTEL_TRACES_SAMPLE_RATIO", "1.0"))

    # Courier pricing
    BUSINESS_ADDRESS = os.getenv("BUSINESS_ADDRESS", DEFAULT_ORIGIN_ADDRESS)
    COURIER_RATE_PER_KM = os.getenv("COURIER_RATE_PER_KM", str(DEFAULT_RATE_PER_KM))

    # Receipt and EFT details
    COMPANY_NAME = "QuickBuy"
    COMPANY_NUMBER = os.getenv("COMPANY_NUMBER", "022 487 2258")
    COMPANY_ADDRESS = os.getenv("COMPANY_ADDRESS", "31 Smuts Str, Malmesbury, 7300")
    EFT_BANK_NAME = os.getenv("EFT_BANK_NAME", "First National Bank")
    EFT_ACCOUNT_NAME = os.getenv("EFT_ACCOUNT_NAME", "QuickBuy (Pty) Ltd")
    EFT_ACCOUNT_NUMBER = os.getenv("EFT_ACCOUNT_NUMBER", "62000000000")
    EFT_BRANCH_CODE = os.getenv("EFT_BRANCH_CODE", "250655")

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")

class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    RATELIMIT_ENABLED = False

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        if not os.getenv("SECRET_KEY"):
            missing.append("SECRET_KEY")
        if not os.getenv("DATABASE_URL"):
            missing.append("DATABASE_URL")
        if missing:
            raise RuntimeError(
                f"Missing required env vars in production: {', '.join(missing)}"
            )

def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
