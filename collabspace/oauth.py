"""Google OAuth authorization-code flow."""
import logging
from urllib.parse import urlencode

import requests

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


class OAuthError(Exception):
    pass


class GoogleOAuthClient:
    provider = 'google'

    def __init__(self, client_id, client_secret, redirect_uri, timeout=10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            client_id=config.get('GOOGLE_CLIENT_ID'),
            client_secret=config.get('GOOGLE_CLIENT_SECRET'),
            redirect_uri=f"{config['BACKEND_URL']}/api/auth/oauth/google/callback",
        )

    @property
    def configured(self):
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state):
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': 'openid email profile',
            'access_type': 'offline',
            'include_granted_scopes': 'true',
            'state': state,
            'prompt': 'consent',
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def fetch_profile(self, code):
        """Exchange ``code`` for tokens and return the identity profile.

        The result has ``provider_account_id``, ``email``, ``name``,
        ``given_name``, ``family_name``, ``image`` and a ``tokens`` dict.
        """
        try:
            token_res = requests.post(
                GOOGLE_TOKEN_URL,
                data={
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'code': code,
                    'grant_type': 'authorization_code',
                    'redirect_uri': self.redirect_uri,
                },
                headers={'Accept': 'application/json'},
                timeout=self.timeout,
            )
            token_res.raise_for_status()
            tokens = token_res.json()

            info_res = requests.get(
                GOOGLE_USERINFO_URL,
                headers={'Authorization': f"Bearer {tokens.get('access_token')}"},
                timeout=self.timeout,
            )
            info_res.raise_for_status()
            info = info_res.json()
        except requests.RequestException as e:
            raise OAuthError(f"Google token exchange failed: {e}") from e

        if not info.get('email') or not info.get('sub'):
            raise OAuthError("Google profile is missing email or subject")

        return {
            'provider_account_id': info['sub'],
            'email': info['email'],
            'name': info.get('name'),
            'given_name': info.get('given_name'),
            'family_name': info.get('family_name'),
            'image': info.get('picture'),
            'tokens': tokens,
        }
