"""Acting identity for authorization decisions."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import ActorRole

SYSTEM_ACTOR_ID = "system"


class Actor(BaseModel):
    """The identity performing an operation.

    Supplied by the identity layer (API Gateway authorizer, scheduler);
    the core trusts role and id as given.
    """

    model_config = ConfigDict(frozen=True)

    actor_id: str = Field(..., min_length=1, description="Identity ID")
    role: ActorRole = Field(default=ActorRole.GUEST)

    @classmethod
    def system(cls) -> "Actor":
        """Identity used by scheduled maintenance such as the expiry sweep."""
        return cls(actor_id=SYSTEM_ACTOR_ID, role=ActorRole.SYSTEM)

    @property
    def is_system(self) -> bool:
        return self.role == ActorRole.SYSTEM

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN
