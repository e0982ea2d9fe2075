import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

LOG_FORMAT: str = '%(asctime)s - %(levelname)s - %(message)s'


def getenv(key: str, fallback: str) -> str:
    """Read an environment variable, treating an empty value as unset"""
    value = os.environ.get(key)
    if value:
        return value
    return fallback


@dataclass(frozen=True)
class OAuthSettings:
    issuer: str = ''
    authorization_endpoint: str = ''
    token_endpoint: str = ''
    jwks_uri: str = ''
    scopes: List[str] = field(default_factory=lambda: ['openid', 'profile', 'email'])


@dataclass(frozen=True)
class Settings:
    host: str = '0.0.0.0'
    port: int = 8080
    log_level: str = 'INFO'
    log_file: Optional[str] = 'store-mcp-server.log'
    cors_allow_origin: str = '*'
    oauth: OAuthSettings = field(default_factory=OAuthSettings)


def load_settings() -> Settings:
    """Build Settings from the process environment"""
    port_text = getenv('PORT', '8080')
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {port_text!r}")

    # LOG_FILE set to an empty string turns file logging off
    log_file: Optional[str] = os.environ.get('LOG_FILE', 'store-mcp-server.log') or None

    return Settings(
        host=getenv('HOST', '0.0.0.0'),
        port=port,
        log_level=getenv('LOG_LEVEL', 'INFO').upper(),
        log_file=log_file,
        cors_allow_origin=getenv('CORS_ALLOW_ORIGIN', '*'),
        oauth=OAuthSettings(
            issuer=getenv('OAUTH_ISSUER', ''),
            authorization_endpoint=getenv('OAUTH_AUTHORIZATION_ENDPOINT', ''),
            token_endpoint=getenv('OAUTH_TOKEN_ENDPOINT', ''),
            jwks_uri=getenv('OAUTH_JWKS_URI', ''),
            scopes=getenv('OAUTH_SCOPES', 'openid profile email').split(),
        ),
    )


def configure_logging(settings: Settings) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.insert(0, logging.FileHandler(settings.log_file, encoding='utf-8'))

    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        handlers=handlers
    )
