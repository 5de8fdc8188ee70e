from pydantic import BaseModel


class TokenPayload(BaseModel):
    """Claims this service reads from tokens minted by the auth service."""
    sub: int
    exp: int | None = None
