from fastapi import Header, Request

from homebudget.app.services.cache import TTLCache


def get_current_user_id(x_user_id: str = Header(..., min_length=1, description="ID of the authenticated caller")) -> str:
    """Caller identity, established by the authentication layer in front of this API"""
    return x_user_id


def get_dashboard_cache(request: Request) -> TTLCache:
    return request.app.state.dashboard_cache
