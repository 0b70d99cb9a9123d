"""Schema primitives shared across routers."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class APIModel(BaseModel):
    """Response model readable straight from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class IssuedTokenResponse(APIModel):
    """Member API token. The plaintext is only ever returned here."""

    id: UUID
    name: str
    member_id: UUID
    token: str


class ErrorResponse(BaseModel):
    """Body of every error answer."""

    detail: str


ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (401, 403, 404, 409, 410)
}
