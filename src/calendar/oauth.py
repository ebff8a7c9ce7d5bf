"""
Google OAuth2 authorization-code flow for calendar access
"""
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

from google_auth_oauthlib.flow import Flow

from config.settings import Config

logger = logging.getLogger(__name__)


class OAuthManager:
    """Builds consent URLs and exchanges authorization codes for tokens"""

    def __init__(self):
        self.config = Config()

    def _build_flow(self) -> Flow:
        return Flow.from_client_config(
            self.config.google_client_config(),
            scopes=self.config.GOOGLE_SCOPES,
            redirect_uri=self.config.GOOGLE_REDIRECT_URI,
            # the code is exchanged by a fresh flow, so no PKCE verifier to carry over
            autogenerate_code_verifier=False,
        )

    def get_auth_url(self) -> str:
        """Consent URL requesting offline access to calendar events"""
        auth_url, _ = self._build_flow().authorization_url(
            access_type="offline",
            prompt="consent",
        )
        return auth_url

    def exchange_code(self, code: str) -> Dict[str, Optional[str]]:
        """Trade an authorization code for an access/refresh token pair"""
        flow = self._build_flow()
        flow.fetch_token(code=code)
        credentials = flow.credentials
        logger.info("🔑 Authorization code exchanged for calendar tokens")
        return {
            "access_token": credentials.token,
            "refresh_token": credentials.refresh_token,
        }

    def build_redirect_url(self, tokens: Dict[str, Optional[str]]) -> str:
        """Front-end URL carrying the tokens as one-shot query parameters"""
        params = {"access_token": tokens.get("access_token") or ""}
        if tokens.get("refresh_token"):
            params["refresh_token"] = tokens["refresh_token"]
        params["authenticated"] = "true"
        return f"{self.config.BASE_URL.rstrip('/')}/?{urlencode(params)}"
