from enum import Enum

from pydantic_settings import BaseSettings


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    env: Env = Env.local
    db_url: str = "sqlite+aiosqlite:///larder.db"
    mealdb_base_url: str = "https://www.themealdb.com/api/json/v1/1/"
    request_timeout: float = 20
    page_size: int = 20
