"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

The container owns the lifecycle of the in-memory auth state: start()
launches the rate limiter sweep and auth log cleanup, shutdown() stops
them. Tests build a fresh container per test for isolation.
"""

from typing import TYPE_CHECKING, Optional

from shared.clock import Clock, DAY_MS, system_clock
from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import ICredentialStore
    from modules.auth.service import AuthService
    from modules.auth.sessions import SessionManager
    from modules.auth_events.service import AuthEventLog
    from modules.ratelimit.models import RateLimitPolicy
    from modules.ratelimit.service import RateLimiter
    from modules.tokens.interfaces import ITokenStore
    from modules.tokens.service import TokenIssuer


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached for the
    container's lifetime.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Clock = system_clock) -> None:
        self._settings = settings or get_settings()
        self._clock = clock
        self._rate_limiter: "RateLimiter | None" = None
        self._auth_events: "AuthEventLog | None" = None
        self._token_store: "ITokenStore | None" = None
        self._tokens: "TokenIssuer | None" = None
        self._credentials: "ICredentialStore | None" = None
        self._sessions: "SessionManager | None" = None
        self._auth_service: "AuthService | None" = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def rate_limiter(self) -> "RateLimiter":
        """Get the rate limiter instance."""
        if self._rate_limiter is None:
            from modules.ratelimit.service import RateLimiter
            self._rate_limiter = RateLimiter(
                clock=self._clock,
                sweep_interval_ms=self._settings.rate_limit_sweep_interval * 1000,
                max_entry_age_ms=self._settings.rate_limit_max_entry_age * 1000,
            )
        return self._rate_limiter

    @property
    def api_policy(self) -> "RateLimitPolicy":
        """API-wide request policy sized from settings."""
        from modules.ratelimit.models import api_policy
        return api_policy(self._settings.rate_limit_requests, self._settings.rate_limit_window)

    @property
    def auth_events(self) -> "AuthEventLog":
        """Get the auth event log instance."""
        if self._auth_events is None:
            from modules.auth_events.service import AuthEventLog
            self._auth_events = AuthEventLog(
                max_entries=self._settings.auth_log_max_entries,
                clock=self._clock,
                environment=self._settings.environment,
                retention_ms=self._settings.auth_log_retention_days * DAY_MS,
                cleanup_interval_ms=self._settings.auth_log_cleanup_interval * 1000,
            )
        return self._auth_events

    @property
    def token_store(self) -> "ITokenStore":
        """Get the token store for the configured backend."""
        if self._token_store is None:
            if self._settings.storage_backend == "supabase":
                from modules.tokens.repository import SupabaseTokenRepository
                from shared.database import get_supabase_client
                self._token_store = SupabaseTokenRepository(get_supabase_client())
            else:
                from modules.tokens.repository import InMemoryTokenStore
                self._token_store = InMemoryTokenStore()
        return self._token_store

    @property
    def tokens(self) -> "TokenIssuer":
        """Get the token issuer instance."""
        if self._tokens is None:
            from modules.tokens.service import TokenIssuer
            self._tokens = TokenIssuer(self.token_store, clock=self._clock)
        return self._tokens

    @property
    def credentials(self) -> "ICredentialStore":
        """Get the credential store for the configured backend."""
        if self._credentials is None:
            if self._settings.storage_backend == "supabase":
                from modules.auth.repository import SupabaseCredentialRepository
                from shared.database import get_supabase_client
                self._credentials = SupabaseCredentialRepository(get_supabase_client())
            else:
                from modules.auth.repository import InMemoryCredentialStore
                self._credentials = InMemoryCredentialStore()
        return self._credentials

    @property
    def sessions(self) -> "SessionManager":
        """Get the session manager instance."""
        if self._sessions is None:
            from modules.auth.sessions import SessionManager
            self._sessions = SessionManager(
                secret=self._settings.session_secret,
                max_age=self._settings.session_max_age,
                clock=self._clock,
            )
        return self._sessions

    @property
    def auth(self) -> "AuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.passwords import PasswordHasher
            from modules.auth.service import AuthService
            self._auth_service = AuthService(
                credentials=self.credentials,
                tokens=self.tokens,
                limiter=self.rate_limiter,
                events=self.auth_events,
                hasher=PasswordHasher(rounds=self._settings.bcrypt_rounds),
                clock=self._clock,
            )
        return self._auth_service

    def start(self) -> None:
        """Start background housekeeping. Must be called inside a running event loop."""
        self.rate_limiter.start()
        self.auth_events.start()

    async def shutdown(self) -> None:
        """Stop background housekeeping and drop in-memory state."""
        if self._rate_limiter is not None:
            await self._rate_limiter.stop()
        if self._auth_events is not None:
            await self._auth_events.stop()

    async def reset(self) -> None:
        """
        Reset all cached services.

        Background housekeeping is stopped first, so no sweep keeps running
        against a discarded service. This is primarily for testing - allows
        tests to get fresh service instances.
        """
        await self.shutdown()
        self._rate_limiter = None
        self._auth_events = None
        self._token_store = None
        self._tokens = None
        self._credentials = None
        self._sessions = None
        self._auth_service = None


# Module-level container, created at startup
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the process-wide service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container(container: ServiceContainer | None = None) -> None:
    """
    Replace the service container.

    With no argument the next get_container() call builds a fresh one.
    Tests pass a container built with their own settings and clock.
    """
    global _container
    _container = container


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_app_settings() -> Settings:
    """FastAPI dependency for the container's settings."""
    return get_container().settings


def get_auth_service() -> "AuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_session_manager() -> "SessionManager":
    """FastAPI dependency for session manager."""
    return get_container().sessions