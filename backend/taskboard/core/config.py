from dotenv import load_dotenv
import os

load_dotenv()  # Loads variables from .env

DATABASE_URL = os.getenv("DATABASE_URL")
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))
ADMIN_INVITE_TOKEN = os.getenv("ADMIN_INVITE_TOKEN")
CLIENT_URL = os.getenv("CLIENT_URL", "*")
PORT = int(os.getenv("PORT", 8000))
DB_BOOTSTRAP_MODE = os.getenv("DB_BOOTSTRAP_MODE", "background")


def parse_cors_origins(value: str):
    if not value:
        return []
    if value.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]
