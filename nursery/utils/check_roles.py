# nursery/utils/check_roles.py
from fastapi import HTTPException
from typing import Callable, Iterable
from functools import wraps


def has_role(user, roles: Iterable[str]) -> bool:
    return user is not None and (user.role or "").lower() in {r.lower() for r in roles}


def require_role(roles: list[str]):
    """
    Route decorator limiting access to the given roles.

    The route must take the authenticated user as `_user`
    (`_user=Depends(get_current_user)`).
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, _user, **kwargs):
            if _user is None:
                raise HTTPException(status_code=401, detail="User not authenticated")
            if not has_role(_user, roles):
                raise HTTPException(status_code=403, detail=f"Permission denied: requires {' or '.join(roles)}")
            return await func(*args, _user=_user, **kwargs)
        return wrapper
    return decorator
