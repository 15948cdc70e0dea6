import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")
    JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
    JWT_ALGO = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
    DB_HOST = os.getenv("DB_HOST")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_NAME = os.getenv("DB_NAME")
    DB_SSLMODE = os.getenv("DB_SSLMODE", "require")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CHAT_IDLE_TTL = float(os.getenv("CHAT_IDLE_TTL", "1800"))

settings = Settings()
