from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Order Coupons API"
    DATABASE_URL: str = "sqlite:///./ordercoupons.db"
    CURRENCY: str = "INR"
    LOG_LEVEL: str = "INFO"
    DB_ECHO: bool = False

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    RELOAD: bool = False

    # Razorpay
    RAZORPAY_KEY_ID: str = "rzp_test_placeholder"
    RAZORPAY_KEY_SECRET: str = "rzp_secret_placeholder"
    RAZORPAY_WEBHOOK_SECRET: str = "webhook_secret"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
