# src/vrchat_relay/models.py

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Credentials(BaseModel):
    username: str = ""
    password: str = ""


class AuthChallenge(BaseModel):
    method: str


class TwoFactorAuthRequest(BaseModel):
    code: str


# --- Upstream response shapes ---

class UpstreamModel(BaseModel):
    """Base for upstream records. A null field falls back to its default."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class TwoFactorRequired(UpstreamModel):
    requiresTwoFactorAuth: List[str] = []


class CurrentUser(UpstreamModel):
    """Partial projection of the upstream `auth/user` record."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(min_length=1)
    displayName: Optional[str] = None
    bio: str = ""
    bioLinks: List[str] = []
    currentAvatar: Optional[str] = None
    currentAvatarImageUrl: str = ""
    currentAvatarThumbnailImageUrl: str = ""
    activeFriends: List[str] = []
    acceptedTOSVersion: Optional[int] = None
    allowAvatarCopying: Optional[bool] = None


class TwoFactorVerifyResult(UpstreamModel):
    verified: bool = True


class Friend(UpstreamModel):
    id: str = ""
    displayName: str = ""
    bio: str = ""
    bioLinks: List[str] = []
    status: str = ""
    statusDescription: str = ""
    location: str = ""
    userIcon: str = ""
    currentAvatarImageUrl: str = ""
    currentAvatarThumbnailImageUrl: str = ""
    profilePicOverride: str = ""
    profilePicOverrideThumbnail: str = ""

    @property
    def thumbnail_url(self) -> str:
        return self.profilePicOverrideThumbnail or self.currentAvatarThumbnailImageUrl


class World(UpstreamModel):
    name: str = ""
    authorName: str = ""
    description: str = ""
    thumbnailImageUrl: str = ""


class Instance(UpstreamModel):
    id: str = ""
    ownerId: str = ""
    name: str = ""
    worldId: str = ""
    type: str = ""
    groupAccessType: str = ""
    userCount: int = 0
    capacity: int = 0
    tags: List[str] = []
    photonRegion: str = ""
    world: World = Field(default_factory=World)


class GroupInstances(UpstreamModel):
    fetchedAt: Optional[str] = None
    instances: List[Instance] = []
