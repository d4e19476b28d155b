"""
Google sign-in (OAuth2 / OpenID Connect).

Builds the consent URL, exchanges the callback code for tokens and
validates the ID token against Google's published keys.
"""
import logging
import os

import requests
from authlib.integrations.requests_client import OAuth2Session
from authlib.jose import jwt, JsonWebKey
from authlib.jose.errors import JoseError

logger = logging.getLogger(__name__)

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
GOOGLE_ISSUERS = ("https://accounts.google.com", "accounts.google.com")
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
HTTP_TIMEOUT = 10


class GoogleOAuthService:

    def __init__(self, client_id=None, client_secret=None, redirect_uri=None):
        self.client_id = client_id or os.getenv('GOOGLE_CLIENT_ID')
        self.client_secret = client_secret or os.getenv('GOOGLE_CLIENT_SECRET')
        self.redirect_uri = redirect_uri or os.getenv('GOOGLE_REDIRECT_URI')

        if not all([self.client_id, self.client_secret, self.redirect_uri]):
            raise ValueError(
                "Missing Google OAuth configuration. "
                "Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, and GOOGLE_REDIRECT_URI"
            )

    def get_authorization_url(self, state: str) -> str:
        session = OAuth2Session(
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            scope='openid email profile'
        )
        authorization_url, _ = session.create_authorization_url(GOOGLE_AUTH_URL, state=state)
        return authorization_url

    def exchange_code_for_tokens(self, code: str) -> dict:
        session = OAuth2Session(client_id=self.client_id, redirect_uri=self.redirect_uri)
        token = session.fetch_token(GOOGLE_TOKEN_URL, code=code, client_secret=self.client_secret)
        logger.info("Exchanged Google authorization code for tokens")
        return token

    def validate_and_decode_id_token(self, id_token: str) -> dict:
        """
        Verify signature, issuer, audience and email verification.

        Raises:
            ValueError: If the token is invalid
        """
        try:
            jwks = self._fetch_jwks(self._get_jwks_uri())
            claims = jwt.decode(id_token, jwks)
            claims.validate()
        except JoseError as e:
            logger.error(f"ID token validation failed: {str(e)}")
            raise ValueError(f"Token inválido: {str(e)}")

        if claims.get('iss') not in GOOGLE_ISSUERS:
            raise ValueError(f"Invalid issuer: {claims.get('iss')}")
        if claims.get('aud') != self.client_id:
            raise ValueError(f"Invalid audience: {claims.get('aud')}")
        if not claims.get('email_verified'):
            raise ValueError("Email not verified by Google")

        return claims

    def _get_jwks_uri(self) -> str:
        try:
            response = requests.get(GOOGLE_DISCOVERY_URL, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
            jwks_uri = response.json().get('jwks_uri')
        except requests.RequestException as e:
            logger.error(f"Failed to fetch discovery document: {str(e)}")
            raise ValueError("Error obteniendo configuración de Google")

        if not jwks_uri:
            raise ValueError("Error obteniendo configuración de Google")
        return jwks_uri

    def _fetch_jwks(self, jwks_uri: str):
        try:
            response = requests.get(jwks_uri, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
            return JsonWebKey.import_key_set(response.json())
        except requests.RequestException as e:
            logger.error(f"Failed to fetch JWKS: {str(e)}")
            raise ValueError("Error obteniendo claves de Google")


# Singleton instance
_oauth_service = None


def get_google_oauth_service() -> GoogleOAuthService:
    global _oauth_service
    if _oauth_service is None:
        _oauth_service = GoogleOAuthService()
    return _oauth_service
