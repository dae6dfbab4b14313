from dataclasses import dataclass
from typing import Any, Dict

from dashboard.state.preferences import Preferences


@dataclass
class DashboardContext:
    user: Dict[str, Any]
    preferences: Preferences

    @property
    def user_name(self) -> str:
        return self.user.get("name") or str(self.user.get("email") or "").split("@")[0] or "there"
