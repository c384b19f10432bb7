"""
Client context passed explicitly to the sync queue and API client.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from tribe_track.core.config import settings


@dataclass
class ClientContext:
    """Who is signed in and where the API lives."""
    user_id: str
    api_base_url: str = settings.API_BASE_URL
    access_token: Optional[str] = None

    def auth_headers(self) -> Dict[str, str]:
        """Headers identifying the user to the API gateway."""
        headers = {"X-User-Id": self.user_id}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers
