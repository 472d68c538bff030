import asyncio
import logging
from datetime import datetime, timedelta, timezone

from siteconnect.constants.enums import FlowStage
from siteconnect.core.settings import settings
from siteconnect.integrations.core.exceptions import InvalidOrExpiredStateError
from siteconnect.models.oauth_flow_state import OAuthFlowState

logger = logging.getLogger(__name__)


class FlowStateStore:
    """
    Pending authorization flows keyed by their ``state`` value.

    Entries are single-use: ``consume`` removes the entry before returning it,
    so a replayed callback finds nothing. Expired entries are purged on every
    access.
    """

    def __init__(self, ttl_seconds: int | None = None):
        self._ttl = timedelta(
            seconds=ttl_seconds if ttl_seconds is not None else settings.oauth_state_ttl_seconds
        )
        self._states: dict[str, OAuthFlowState] = {}
        self._lock = asyncio.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def put(
        self,
        state: str,
        user_scope: str,
        redirect_uri: str,
        code_verifier: str | None = None,
        code_challenge: str | None = None,
        now: datetime | None = None,
    ) -> OAuthFlowState:
        now = now or datetime.now(timezone.utc)
        flow = OAuthFlowState(
            state=state,
            user_scope=user_scope,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
            code_challenge=code_challenge,
            created_at=now,
            expires_at=now + self._ttl,
        )
        async with self._lock:
            self._purge_expired(now)
            self._states[state] = flow
        return flow

    async def mark(self, state: str, stage: FlowStage) -> None:
        async with self._lock:
            flow = self._states.get(state)
            if flow is not None:
                flow.stage = stage

    async def consume(self, state: str, now: datetime | None = None) -> OAuthFlowState:
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            self._purge_expired(now)
            flow = self._states.pop(state, None)
        if flow is None:
            logger.warning("Unknown or expired OAuth state %s...", state[:8])
            raise InvalidOrExpiredStateError()
        return flow

    async def pending_count(self) -> int:
        async with self._lock:
            self._purge_expired(datetime.now(timezone.utc))
            return len(self._states)

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, flow in self._states.items() if flow.is_expired(now)]
        for key in expired:
            del self._states[key]
        if expired:
            logger.debug("Purged %d expired OAuth state(s)", len(expired))


flow_state_store = FlowStateStore()
