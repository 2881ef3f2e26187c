import os
from typing import List, Mapping, Optional
from pydantic import BaseModel, field_validator


DEFAULT_SETTINGS = {
    "config_api_url": "https://api.conturs.com",
    "port": 8082,
    "config_api_timeout": 10.0,
    "allowed_origins": [
        "https://conturs.com",
        "https://www.conturs.com",
        "https://app.conturs.com",
    ],
    "log_level": "INFO",
}

ENV_VARS = {
    "config_api_url": "CONFIG_API_URL",
    "port": "PORT",
    "config_api_timeout": "CONFIG_API_TIMEOUT",
    "allowed_origins": "ALLOWED_ORIGINS",
    "log_level": "LOG_LEVEL",
}


class Settings(BaseModel):
    config_api_url: str = DEFAULT_SETTINGS["config_api_url"]
    port: int = DEFAULT_SETTINGS["port"]
    config_api_timeout: float = DEFAULT_SETTINGS["config_api_timeout"]
    allowed_origins: List[str] = list(DEFAULT_SETTINGS["allowed_origins"])
    log_level: str = DEFAULT_SETTINGS["log_level"]

    @field_validator("config_api_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("config_api_timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("config_api_timeout must be positive")
        return v


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    data = {}
    for field, var in ENV_VARS.items():
        value = env.get(var)
        if value:
            data[field] = value
    return Settings.model_validate(data)
