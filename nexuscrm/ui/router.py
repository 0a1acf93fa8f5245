"""Top-level screen routing for the dashboard. Pure state, no business logic."""
import enum
import logging
from typing import Any, Union

logger = logging.getLogger(__name__)

LOADING_SCREEN = "loading"


class View(str, enum.Enum):
    DASHBOARD = "Dashboard"
    CONTACTS = "Contacts"
    USERS = "Users"
    PLANS = "Plans"
    PROFILE = "Profile"
    SETTINGS = "Settings"
    ASSISTANT = "Assistant"


class AuthView(str, enum.Enum):
    WELCOME = "welcome"
    LOGIN = "login"
    REGISTER = "register"


class SettingsTab(str, enum.Enum):
    PROFILE = "profile"
    NOTIFICATIONS = "notifications"
    SECURITY = "security"


class ViewRouter:
    """Active app view plus an optional payload (e.g. the settings tab to open)."""

    def __init__(self, initial: View = View.DASHBOARD):
        self.active_view = View(initial)
        self.payload: Any = None

    def navigate(self, view: View, payload: Any = None) -> None:
        self.active_view = View(view)
        self.payload = payload
        logger.debug(f"Navigated to {self.active_view.value} (payload={payload!r})")

    def open_settings(self, tab: SettingsTab = SettingsTab.PROFILE) -> None:
        self.navigate(View.SETTINGS, SettingsTab(tab))

    @property
    def settings_tab(self) -> SettingsTab:
        if self.active_view is View.SETTINGS and isinstance(self.payload, SettingsTab):
            return self.payload
        return SettingsTab.PROFILE


class AuthRouter:
    """Which signed-out screen is shown. Falls back to welcome on sign-out."""

    def __init__(self):
        self.view = AuthView.WELCOME

    def show(self, view: AuthView) -> None:
        self.view = AuthView(view)

    def reset(self) -> None:
        self.view = AuthView.WELCOME

    def bind(self, session_store) -> None:
        """Reset to welcome whenever the session store's user becomes absent."""
        def on_user_changed(user) -> None:
            if user is None:
                self.reset()
        session_store.add_listener(on_user_changed)


def resolve_screen(session_store, view_router: ViewRouter, auth_router: AuthRouter) -> Union[str, View, AuthView]:
    """Screen to render: loading, an auth view when signed out, else the active view."""
    if session_store.is_loading:
        return LOADING_SCREEN
    if session_store.user is None:
        return auth_router.view
    return view_router.active_view
