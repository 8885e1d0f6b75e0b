import logging
from enum import Enum
import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing import List, Optional

logger = logging.getLogger(__name__)


class ServerEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    user_id: str
    token: str

    @field_validator("host")
    @classmethod
    def normalize_host(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("host must not be empty")
        if not (v.startswith("http://") or v.startswith("https://")):
            v = "https://" + v
        v = v.rstrip("/")
        try:
            has_host = bool(httpx.URL(v).host)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid host {v!r}: {e}") from e
        if not has_host:
            raise ValueError(f"host {v!r} has no server name")
        return v

    @field_validator("user_id", "token")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class PlayState(BaseModel):
    """Per-user play state, the ``UserData`` object on the wire."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    position_ticks: int = Field(0, alias="PlaybackPositionTicks")
    play_count: int = Field(0, alias="PlayCount")
    played: bool = Field(False, alias="Played")

    @field_validator("position_ticks", "play_count", "played", mode="before")
    @classmethod
    def null_as_zero(cls, v):
        return v if v is not None else 0

    @property
    def is_played(self) -> bool:
        return self.played or self.play_count > 0


class MediaItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="Id")
    name: str = Field("", alias="Name")
    runtime_ticks: int = Field(0, alias="RunTimeTicks")
    play_state: Optional[PlayState] = Field(None, alias="UserData")

    @field_validator("name", mode="before")
    @classmethod
    def null_name(cls, v):
        return v if v is not None else ""

    @field_validator("runtime_ticks", mode="before")
    @classmethod
    def null_runtime(cls, v):
        return v if v is not None else 0

    @property
    def is_played(self) -> bool:
        return self.play_state is not None and self.play_state.is_played


class ItemsPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: List[MediaItem] = Field(default_factory=list, alias="Items")
    total_record_count: int = Field(0, alias="TotalRecordCount")
    start_index: int = Field(0, alias="StartIndex")
    # entries the server sent, including ones skipped as undecodable
    received_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def count_received(cls, data):
        if isinstance(data, dict) and isinstance(data.get("Items"), list):
            data = {**data, "received_count": len(data["Items"])}
        return data

    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, v):
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        # one odd entry must not sink the whole page
        items = []
        for raw in v:
            try:
                items.append(MediaItem.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping undecodable item {raw!r}: {e}")
        return items


class SyncOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    dry_run: bool = False
    marked_count: int = 0
    unmatched_count: int = 0
    already_played_count: int = 0
    error_count: int = 0


class ItemResult(str, Enum):
    MARKED = "marked"
    UNMATCHED = "unmatched"
    ALREADY_PLAYED = "already_played"
    ERROR = "error"
