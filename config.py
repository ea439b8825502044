"""
Runtime configuration for the finance dashboard API.

Values come from the environment; a local .env file is loaded first when present.
"""
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000"


class Settings(BaseModel):
    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "financeappcluster"
    jwt_secret: str = "super-secret-key-change"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12
    cors_origins: List[str] = DEFAULT_CORS_ORIGINS.split(",")
    log_level: str = "INFO"
    port: int = 3001

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            db_name=os.getenv("DB_NAME", "financeappcluster"),
            jwt_secret=os.getenv("JWT_SECRET", "super-secret-key-change"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", 60 * 24)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 12)),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", 3001)),
        )
