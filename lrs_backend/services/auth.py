"""Auth resolver: API key pair -> scoped identity, plus request authorization."""

from __future__ import annotations

from ..auth.authorize import authorize_action
from ..auth.credentials import AuthIdentity, KeyPair, header_to_key_pair
from ..auth.scopes import DEFAULT_SCOPES, ScopeDecodeError, decode_scopes
from ..logging_utils import get_logger
from ..repositories.credential_repo import CredentialScopeStore, SQLAlchemyCredentialRepository
from ..results import FORBIDDEN, Err, ErrorKind, Ok, Result
from .base import TransactionalService

logger = get_logger(__name__)


async def query_credential_scopes(
    store: CredentialScopeStore, key_pair: KeyPair
) -> Ok[AuthIdentity] | Err:
    """Resolve the scopes of a key pair.

    Unknown pairs are forbidden. A known pair with no scope rows (or only
    null placeholders) gets the default scopes, never an empty set.
    """
    stored = await store.get_scopes(key_pair)
    if stored is None:
        return FORBIDDEN

    tokens = [scope for scope in stored if scope is not None]
    if not tokens:
        scopes = DEFAULT_SCOPES
    else:
        try:
            scopes = decode_scopes(tokens)
        except ScopeDecodeError as exc:
            return Err(ErrorKind.DECODE_ERROR, str(exc))

    return Ok(AuthIdentity(scopes=scopes, auth=key_pair, prefix=""))


class AuthService(TransactionalService):
    async def authenticate(self, api_key: str, secret_key: str) -> Result[AuthIdentity]:
        key_pair = KeyPair(api_key=api_key, secret_key=secret_key)

        async def body(session):
            return await query_credential_scopes(SQLAlchemyCredentialRepository(session), key_pair)

        return await self._run("authenticate", body)

    async def authenticate_header(self, header: str | None) -> Result[AuthIdentity]:
        """Authenticate an HTTP Basic ``Authorization`` header value."""
        key_pair = header_to_key_pair(header)
        if key_pair is None:
            logger.info("authenticate rejected: missing or malformed authorization header")
            return FORBIDDEN
        return await self.authenticate(key_pair.api_key, key_pair.secret_key)

    def authorize(self, method: str, path: str, identity: AuthIdentity) -> bool:
        return authorize_action(method, path, identity, self._settings.url_prefix)
