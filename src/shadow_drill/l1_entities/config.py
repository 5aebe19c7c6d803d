"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class PlaybackConfig(BaseModel):
    poll_interval: float = Field(gt=0)
    rates: list[float] = Field(min_length=1)
    default_rate: float
    seek_settle_delay: float = Field(ge=0)
    end_pause_tolerance: float = Field(ge=0)  # paused this close to clip end counts as natural completion

    @model_validator(mode='after')
    def _validate_default_rate(self) -> PlaybackConfig:
        if self.default_rate not in self.rates:
            raise ValueError(f'default_rate {self.default_rate} is not one of {self.rates}')
        return self


class RecordingConfig(BaseModel):
    sample_rate: int = Field(gt=0)
    channels: int = Field(ge=1)


class StorageConfig(BaseModel):
    directory: str
    playback_url_ttl: int = Field(gt=0)
    signing_key: str = ''  # empty → generated and kept in the data directory


class UserConfig(BaseModel):
    id: str


class AppConfig(BaseModel):
    playback: PlaybackConfig
    recording: RecordingConfig
    storage: StorageConfig
    user: UserConfig
