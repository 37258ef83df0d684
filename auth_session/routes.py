"""
Route names the session manager navigates to.

Usage:
    from auth_session.routes import ROUTES

    navigator.goto(ROUTES.PROFILE)
"""


class Routes:
    """Named client routes."""
    HOME = "/"
    PROFILE = "/profile"
    SUCCESS = "/success"


ROUTES = Routes()
