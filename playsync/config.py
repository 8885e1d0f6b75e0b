from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from .models import ServerEndpoint

class Settings(BaseSettings):
    # Server A
    SERVER_A_HOST: str
    SERVER_A_USER_ID: str
    SERVER_A_TOKEN: str

    # Server B
    SERVER_B_HOST: str
    SERVER_B_USER_ID: str
    SERVER_B_TOKEN: str

    # Sync Logic
    DRY_RUN: bool = True
    ONE_WAY_MODE: Literal["bidirectional", "a_to_b", "b_to_a"] = "bidirectional"

    # System
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    def server_a(self) -> ServerEndpoint:
        return ServerEndpoint(host=self.SERVER_A_HOST, user_id=self.SERVER_A_USER_ID, token=self.SERVER_A_TOKEN)

    def server_b(self) -> ServerEndpoint:
        return ServerEndpoint(host=self.SERVER_B_HOST, user_id=self.SERVER_B_USER_ID, token=self.SERVER_B_TOKEN)
