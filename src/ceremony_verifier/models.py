from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional


def _alias(snake: str, camel: str) -> AliasChoices:
    return AliasChoices(snake, camel)


class LockResponse(BaseModel):
    """Chunk lock granted to this verifier by the coordinator."""

    # Schema drift must fail loudly instead of producing a partial value.
    model_config = ConfigDict(
        extra="forbid", frozen=True, populate_by_name=True, strict=True
    )

    chunk_id: str = Field(
        ...,
        validation_alias=_alias("chunk_id", "chunkId"),
        description="Identifier of the locked chunk.",
    )
    contribution_id: Optional[int] = Field(
        None,
        validation_alias=_alias("contribution_id", "contributionId"),
        description="Contribution being verified within the chunk.",
    )
    locked: bool = Field(True, description="Whether the lock is held.")
    participant_id: Optional[str] = Field(
        None,
        validation_alias=_alias("participant_id", "participantId"),
        description="Participant identifier the coordinator assigned to us.",
    )
    challenge_locator: str = Field(
        ...,
        validation_alias=_alias("challenge_locator", "challengeLocator"),
        description="Locator of the challenge file to download.",
    )
    response_locator: str = Field(
        ...,
        validation_alias=_alias("response_locator", "responseLocator"),
        description="Locator of the unverified response file to download.",
    )
    next_challenge_locator: str = Field(
        ...,
        validation_alias=_alias("next_challenge_locator", "nextChallengeLocator"),
        description="Locator the verified next challenge is uploaded to.",
    )

    @field_validator("chunk_id", mode="before")
    @classmethod
    def _chunk_id_as_string(cls, value):
        # Coordinators encode chunk ids as integers; bool is not an id.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
