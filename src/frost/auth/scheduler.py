"""Self-rescheduling refresh loop driven by access token expiry."""

import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from frost.auth.acquirer import ACCESS_TOKEN_KEY, EXPIRES_AT_KEY, TokenAcquirer
from frost.auth.registrar import ClientRegistrar
from frost.core.exceptions import InvalidClientError, PersistenceError
from frost.core.models import UserConfig, utcnow
from frost.interfaces.config_store import ConfigStore
from frost.sync.artifact_sync import ArtifactSync
from frost.utils.logging import get_logger, log_error
from frost.writers.aws_config import write_sso_cache

logger = get_logger(__name__)

USER_CONFIG_KEY = "userConfig"
LAST_ERROR_KEY = "lastError"
IS_WORKING_KEY = "isWorking"


class Timer(Protocol):
    """One-shot timer, as provided by ``threading.Timer``."""

    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], Any]], Timer]


class RefreshScheduler:
    """Owns the single pending refresh timer and runs refresh cycles.

    A cycle registers or reuses the OIDC client, acquires a token, writes the
    SSO cache, rearms the timer for the token's expiry and regenerates the
    AWS profiles and kubeconfig. Failures are recorded as the last error and
    the timer is rearmed, so refresh never stops on its own.
    """

    def __init__(
        self,
        store: ConfigStore,
        registrar: ClientRegistrar,
        acquirer: TokenAcquirer,
        artifact_sync: ArtifactSync,
        sso_cache_dir: str | Path,
        minimum_delay: float = 0.5,
        error_backoff: float = 5.0,
        max_error_backoff: float = 300.0,
        clock: Callable[[], datetime] = utcnow,
        timer_factory: TimerFactory = threading.Timer,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler.

        Args:
            store: Persisted application config
            registrar: OIDC client registrar
            acquirer: Device flow token acquirer
            artifact_sync: Profile and kubeconfig regeneration
            sso_cache_dir: Directory of the AWS SSO token cache
            minimum_delay: Shortest delay between two refreshes (seconds)
            error_backoff: Delay after the first failed cycle (seconds)
            max_error_backoff: Upper bound of the failure backoff (seconds)
            clock: Source of the current time
            timer_factory: Builds one-shot timers
            monotonic: Monotonic clock used to report the time until the next refresh
        """
        self.store = store
        self.registrar = registrar
        self.acquirer = acquirer
        self.artifact_sync = artifact_sync
        self.sso_cache_dir = sso_cache_dir
        self.minimum_delay = minimum_delay
        self.error_backoff = error_backoff
        self.max_error_backoff = max_error_backoff
        self.clock = clock
        self.timer_factory = timer_factory
        self.monotonic = monotonic

        self._timer: Timer | None = None
        self._due_at: float | None = None
        self._generation = 0
        self._timer_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self.consecutive_failures = 0

    def user_config(self) -> UserConfig | None:
        """The configured SSO portal, or None when not configured."""
        data = self.store.get(USER_CONFIG_KEY)
        if not data:
            return None
        try:
            return UserConfig.model_validate(data)
        except ValidationError as e:
            logger.warning("stored_user_config_invalid", error=str(e))
            return None

    def expires_at(self) -> datetime | None:
        """Expiry of the persisted access token, if any."""
        value = self.store.get(EXPIRES_AT_KEY)
        if not value:
            return None
        try:
            expires_at = datetime.fromisoformat(value)
        except (TypeError, ValueError):
            logger.warning("stored_expiry_invalid", value=value)
            return None
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at

    def compute_delay(self) -> float:
        """Seconds until the next refresh is due."""
        expires_at = self.expires_at()
        if expires_at is None:
            return 0.0
        return max((expires_at - self.clock()).total_seconds(), self.minimum_delay)

    def schedule_next(self, not_before: float = 0.0) -> float:
        """Replace any pending timer with one firing at the next refresh.

        Args:
            not_before: Lower bound for the delay (seconds)

        Returns:
            The delay the new timer was armed with
        """
        delay = max(self.compute_delay(), not_before)

        with self._timer_lock:
            if self._timer is not None:
                logger.debug("clearing_existing_timer")
                self._timer.cancel()

            self._generation += 1
            generation = self._generation
            timer = self.timer_factory(delay, lambda: self._on_timer(generation))
            timer.daemon = True
            timer.start()
            self._timer = timer
            self._due_at = self.monotonic() + delay

        logger.info("next_refresh_scheduled", delay_seconds=round(delay, 3))
        return delay

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        with self._timer_lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._due_at = None

    def stop(self) -> None:
        """Stop refreshing until the next schedule_next call."""
        self.cancel()
        logger.info("scheduler_stopped")

    def time_until_next_refresh(self) -> float | None:
        """Seconds until the pending timer fires, or None when nothing is scheduled."""
        with self._timer_lock:
            if self._due_at is None:
                return None
            return max(self._due_at - self.monotonic(), 0.0)

    def _on_timer(self, generation: int) -> None:
        with self._timer_lock:
            if generation != self._generation:
                # Replaced or cancelled after it fired
                return
            self._timer = None
            self._due_at = None
        self.run_refresh_cycle()

    def refresh_now(self) -> bool:
        """Run a refresh cycle immediately instead of waiting for the timer."""
        self.cancel()
        return self.run_refresh_cycle()

    def reconfigure(self, user_config: UserConfig, refresh: bool = True) -> None:
        """Switch to another SSO portal.

        The persisted token belongs to the previous portal and is dropped.

        Args:
            user_config: New SSO portal configuration
            refresh: Whether to arm the timer for an immediate refresh
        """
        logger.info("reconfiguring", start_url=user_config.start_url, region=user_config.region)
        self.store.set(USER_CONFIG_KEY, user_config.to_store())
        self.store.delete(ACCESS_TOKEN_KEY)
        self.store.delete(EXPIRES_AT_KEY)
        self.consecutive_failures = 0
        if refresh:
            self.schedule_next()
        else:
            self.cancel()

    def run_refresh_cycle(self) -> bool:
        """Refresh credentials and regenerate artifacts.

        Returns:
            True if the cycle completed, False if it was skipped or failed
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.info("refresh_already_running")
            return False

        try:
            user_config = self.user_config()
            if user_config is None:
                logger.warning("missing_user_config")
                return False
            return self._run_cycle(user_config)
        finally:
            self._cycle_lock.release()

    def _run_cycle(self, user_config: UserConfig) -> bool:
        logger.info("refreshing_credentials", start_url=user_config.start_url)

        try:
            self.store.set(IS_WORKING_KEY, True)
            self.store.set(LAST_ERROR_KEY, None)

            client = self.registrar.get_or_register_client(user_config)
            token = self.acquirer.acquire_token(user_config, client)
            write_sso_cache(user_config, token, self.sso_cache_dir)
            self.consecutive_failures = 0
            self.schedule_next()

            result = self.artifact_sync.sync(user_config, token)
            logger.info(
                "refresh_completed",
                profiles=len(result.profiles),
                clusters=len(result.clusters),
            )
            return True

        except Exception as e:
            log_error(logger, e, operation="refresh")
            if isinstance(e, InvalidClientError):
                self._discard_client()
            self._record_error(e)
            self.consecutive_failures += 1
            self.schedule_next(not_before=self._backoff())
            return False

        finally:
            self._set_not_working()

    def _backoff(self) -> float:
        exponent = max(self.consecutive_failures - 1, 0)
        return min(self.error_backoff * 2**exponent, self.max_error_backoff)

    def _discard_client(self) -> None:
        try:
            self.registrar.discard()
        except PersistenceError as e:
            log_error(logger, e, operation="discard_client")

    def _record_error(self, error: Exception) -> None:
        try:
            self.store.set(LAST_ERROR_KEY, str(error) or type(error).__name__)
        except PersistenceError as e:
            log_error(logger, e, operation="record_last_error")

    def _set_not_working(self) -> None:
        try:
            self.store.set(IS_WORKING_KEY, False)
        except PersistenceError as e:
            log_error(logger, e, operation="clear_working_flag")
