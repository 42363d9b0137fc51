"""Credentials component - issues, rotates and revokes credentials."""

import logging
import threading
from datetime import timedelta
from typing import get_args
from uuid import UUID

from cutroom.components.credentials.models import AuthOutput
from cutroom.components.credentials.ports import (
    AccountRepoPort,
    ClockPort,
    IdentityProviderPort,
    TokenPort,
)
from cutroom.domain.entities import (
    Account,
    CredentialPair,
    DelegatedCredential,
    IdentityAssertion,
    RoleType,
)
from cutroom.domain.errors import (
    AccountNotFound,
    DelegationExpired,
    IdentityProviderError,
    NotDelegated,
    SessionRevoked,
    Unauthenticated,
)
from cutroom.rules.models import Rules

logger = logging.getLogger(__name__)

# Token kinds, each signed with its own secret.
ACCESS = "access"
SESSION = "session"
STATE = "state"


class AccountLocks:
    """Process-wide registry of one lock per account."""

    def __init__(self) -> None:
        self._locks: dict[UUID, threading.Lock] = {}
        self._guard = threading.Lock()

    def for_account(self, account_id: UUID) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(account_id, threading.Lock())


class CredentialManager:
    """
    Issues access/session credential pairs and guards the single stored session.

    The stored session value only changes through a compare-and-swap on the
    account row, so of two concurrent rotations with the same credential
    exactly one wins.
    """

    def __init__(
        self,
        accounts: AccountRepoPort,
        tokens: TokenPort,
        identity: IdentityProviderPort,
        rules: Rules,
        clock: ClockPort,
        locks: AccountLocks | None = None,
    ) -> None:
        self._accounts = accounts
        self._tokens = tokens
        self._identity = identity
        self._rules = rules
        self._clock = clock
        self._locks = locks or AccountLocks()

    # --- Sign-in ---

    def begin_sign_in(self, role: RoleType) -> str:
        """Return the consent URL, carrying the role intent in a signed state."""
        if role not in get_args(RoleType):
            raise ValueError(f"Unknown role: {role}")
        expires_at = self._clock.now_utc() + timedelta(
            minutes=self._rules.auth.oauth.state_ttl_minutes
        )
        state = self._tokens.issue(STATE, "sign-in", expires_at, role=role)
        return self._identity.begin_consent(role, state)

    def complete_sign_in(self, code: str, state: str) -> AuthOutput:
        claims = self._tokens.verify(STATE, state, self._clock.now_utc())
        role = claims.get("role")
        if role not in get_args(RoleType):
            raise Unauthenticated("Sign-in state carries no role")
        assertion = self._identity.complete_consent(code, role)
        return self.authenticate(assertion)

    def authenticate(self, assertion: IdentityAssertion) -> AuthOutput:
        email = assertion.email.strip().lower()
        if not email:
            raise Unauthenticated("Identity assertion carries no email")

        now = self._clock.now_utc()
        account = self._accounts.get_by_email(email)
        if account is None:
            account = self._accounts.create(
                Account(email=email, role=assertion.role, created_at=now, updated_at=now)
            )
            logger.info("Created %s account %s", account.role, account.id)
        elif account.role != assertion.role:
            logger.info(
                "Account %s signed in as %s but keeps role %s",
                account.id,
                assertion.role,
                account.role,
            )

        if (
            account.role == "producer"
            and assertion.role == "producer"
            and assertion.delegated is not None
        ):
            bundle = assertion.delegated
            if bundle.refresh_token is None and account.delegated is not None:
                bundle = bundle.model_copy(
                    update={"refresh_token": account.delegated.refresh_token}
                )
            self._accounts.save_delegated(account.id, bundle)
            account = account.model_copy(update={"delegated": bundle})

        pair = self._issue_pair(account)
        if not self._accounts.swap_session(
            account.id, None, self._stored_value(pair.session_token), now
        ):
            raise AccountNotFound()

        logger.info("Issued session for account %s", account.id)
        return AuthOutput(account=account, credentials=pair)

    # --- Verification & rotation ---

    def verify_access(self, access_token: str) -> UUID:
        return self.account_for_access(access_token).id

    def account_for_access(self, access_token: str) -> Account:
        claims = self._tokens.verify(ACCESS, access_token, self._clock.now_utc())
        return self.get_account(self._subject(claims))

    def rotate(self, session_token: str) -> AuthOutput:
        claims = self._tokens.verify(SESSION, session_token, self._clock.now_utc())
        account = self.get_account(self._subject(claims))

        presented = self._stored_value(session_token)
        if account.session is None or account.session.token_hash != presented:
            # Valid signature but superseded: a replay of an already rotated credential.
            logger.warning("Rejected superseded session credential for account %s", account.id)
            raise SessionRevoked()

        pair = self._issue_pair(account)
        if not self._accounts.swap_session(
            account.id, presented, self._stored_value(pair.session_token), self._clock.now_utc()
        ):
            logger.warning("Lost concurrent session rotation for account %s", account.id)
            raise SessionRevoked()

        return AuthOutput(account=account, credentials=pair)

    def invalidate(self, account_id: UUID) -> None:
        self._accounts.swap_session(account_id, None, None, None)
        logger.info("Cleared session for account %s", account_id)

    def get_account(self, account_id: UUID) -> Account:
        account = self._accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()
        return account

    # --- Delegated credential ---

    def resolve_publishing_credential(self, account_id: UUID) -> DelegatedCredential:
        """
        Return a usable delegated credential, refreshing it when it is
        expired or about to expire. Refreshes are serialized per account.
        """
        skew = self._rules.delegation.refresh_skew_seconds
        credential = self._delegated_for(account_id)
        if not credential.is_expired(self._clock.now_utc(), skew):
            return credential

        with self._locks.for_account(account_id):
            # Another caller may have refreshed while we waited.
            credential = self._delegated_for(account_id)
            if not credential.is_expired(self._clock.now_utc(), skew):
                return credential

            if not credential.refresh_token:
                logger.warning("No refresh token stored for account %s", account_id)
                raise DelegationExpired()

            try:
                fresh = self._identity.refresh_delegated(credential.refresh_token)
            except IdentityProviderError as e:
                logger.warning("Delegated refresh failed for account %s: %s", account_id, e)
                raise DelegationExpired() from e

            if fresh.refresh_token is None:
                fresh = fresh.model_copy(update={"refresh_token": credential.refresh_token})
            self._accounts.save_delegated(account_id, fresh)
            logger.info("Refreshed delegated credential for account %s", account_id)
            return fresh

    # --- Helpers ---

    def _delegated_for(self, account_id: UUID) -> DelegatedCredential:
        account = self.get_account(account_id)
        if account.delegated is None:
            raise NotDelegated()
        return account.delegated

    def _issue_pair(self, account: Account) -> CredentialPair:
        now = self._clock.now_utc()
        access_expires = now + timedelta(minutes=self._rules.auth.access.ttl_minutes)
        session_expires = now + timedelta(days=self._rules.auth.sessions.ttl_days)
        subject = str(account.id)
        return CredentialPair(
            access_token=self._tokens.issue(ACCESS, subject, access_expires, role=account.role),
            session_token=self._tokens.issue(SESSION, subject, session_expires),
            access_expires_at=access_expires,
            session_expires_at=session_expires,
        )

    def _stored_value(self, session_token: str) -> str:
        if self._rules.auth.sessions.store_tokens_hashed:
            return self._tokens.fingerprint(session_token)
        return session_token

    @staticmethod
    def _subject(claims: dict[str, object]) -> UUID:
        try:
            return UUID(str(claims["sub"]))
        except (KeyError, ValueError):
            raise Unauthenticated("Credential subject is not an account") from None
