"""Scope-based authorization of xAPI resource access."""

from __future__ import annotations

from lrs_backend.auth.credentials import AuthIdentity
from lrs_backend.auth.scopes import Scope

READ_METHODS = frozenset({"GET", "HEAD"})
WRITE_METHODS = frozenset({"PUT", "POST"})

STATEMENTS = "statements"
STATE = "activities/state"
ACTIVITY_PROFILE = "activities/profile"
AGENT_PROFILE = "agents/profile"
ACTIVITIES = "activities"
AGENTS = "agents"
ABOUT = "about"


def resource_for_path(path: str, url_prefix: str = "") -> str:
    """Reduce a request path to its xAPI resource name."""
    if url_prefix and path.startswith(url_prefix):
        path = path[len(url_prefix):]
    return path.strip("/")


def _scope_allows(scope: Scope, method: str, resource: str) -> bool:
    if scope is Scope.ALL:
        return True
    if scope is Scope.ALL_READ:
        return method in READ_METHODS
    if scope in (Scope.STATEMENTS_READ, Scope.STATEMENTS_READ_MINE):
        return method in READ_METHODS and resource == STATEMENTS
    if scope is Scope.STATEMENTS_WRITE:
        return method in WRITE_METHODS and resource == STATEMENTS
    if scope is Scope.STATE:
        return resource == STATE
    if scope is Scope.PROFILE:
        return resource in (ACTIVITY_PROFILE, AGENT_PROFILE)
    if scope is Scope.DEFINE:
        return method in READ_METHODS and resource in (ACTIVITIES, AGENTS)
    return False


def authorize_action(method: str, path: str, identity: AuthIdentity, url_prefix: str = "") -> bool:
    """Return True when any of the identity's scopes permits the request."""
    method = method.upper()
    resource = resource_for_path(path, url_prefix)
    if resource == ABOUT:
        return True
    return any(_scope_allows(scope, method, resource) for scope in identity.scopes)


def reads_only_own_statements(identity: AuthIdentity) -> bool:
    """True when statement reads are limited to the caller's own authority."""
    scopes = identity.scopes
    if scopes & {Scope.ALL, Scope.ALL_READ, Scope.STATEMENTS_READ}:
        return False
    return Scope.STATEMENTS_READ_MINE in scopes
