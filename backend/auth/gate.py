from fastapi import Depends, Header

from auth.tokens import TokenCodec, build_token_codec
from config import Settings, get_settings, settings
from errors import UnauthorizedError

_codec = build_token_codec(settings)


def get_token_codec() -> TokenCodec:
    return _codec


def bearer_token(authorization: str | None) -> str | None:
    if authorization is None:
        return None
    if authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return authorization.strip()


def _authorize(authorization: str | None, codec: TokenCodec, secret: str, invalid_message: str) -> None:
    if not authorization:
        raise UnauthorizedError("No authorization token")
    if not codec.validate(bearer_token(authorization), secret):
        raise UnauthorizedError(invalid_message)


async def require_site_token(
    authorization: str | None = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
    config: Settings = Depends(get_settings),
) -> None:
    _authorize(authorization, codec, config.SITE_PASSWORD, "Invalid token")


async def require_admin_token(
    authorization: str | None = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
    config: Settings = Depends(get_settings),
) -> None:
    _authorize(authorization, codec, config.ADMIN_PASSWORD, "Invalid admin token")
