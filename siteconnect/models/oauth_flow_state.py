from datetime import datetime

from pydantic import BaseModel

from siteconnect.constants.enums import FlowStage


class OAuthFlowState(BaseModel):
    state: str
    user_scope: str
    redirect_uri: str
    code_verifier: str | None = None
    code_challenge: str | None = None
    stage: FlowStage = FlowStage.STARTED
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AuthorizationStart(BaseModel):
    authorization_url: str
    state: str
    expires_at: datetime
