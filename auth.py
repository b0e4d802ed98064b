import jwt
from fastapi import Depends, Request
from pydantic import ValidationError

from errors import Forbidden, Unauthorized
from schemas import User
from settings import settings


def get_current_user(request: Request) -> User:
    token = request.cookies.get("token")
    if not token:
        raise Unauthorized()
    try:
        claims = jwt.decode(token, settings.ACCESS_TOKEN_SECRET, algorithms=["HS256"])
        return User(**claims)
    except (jwt.InvalidTokenError, ValidationError):
        raise Unauthorized()


def require_role(*roles: str):
    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise Forbidden()
        return user
    return dependency
