"""
Admin Access Gate.

Routing-layer redirect rule for the admin area:

1. Dashboard tree without a credential -> redirect to the login page
2. Login page with a credential        -> redirect to the dashboard
3. Anything else                       -> pass through

The credential is only checked for presence. No signature, expiry or
revocation check happens here; verifying the token against an identity
provider is a separate concern that this layer does not implement.

Credential sources, first non-empty wins:
- the auth token cookie (authToken by default)
- Authorization: Bearer <token>
"""
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from flask import current_app, redirect, request

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '


@dataclass(frozen=True)
class Redirect:
    target: str


@dataclass(frozen=True)
class PassThrough:
    pass


PASS_THROUGH = PassThrough()

GateDecision = Union[Redirect, PassThrough]


@dataclass(frozen=True)
class GateRoutes:
    protected_prefix: str = '/admin/dashboard'
    dashboard_path: str = '/admin/dashboard'
    login_path: str = '/admin/login'
    cookie_name: str = 'authToken'


DEFAULT_ROUTES = GateRoutes()


def extract_credential(cookies: Mapping[str, str], headers: Mapping[str, str],
                       cookie_name: str = DEFAULT_ROUTES.cookie_name) -> Optional[str]:
    """
    Pull a raw credential from the cookie, then the bearer header.

    Returns:
        The token string, or None if neither source carries one
    """
    token = (cookies.get(cookie_name) or '').strip()
    if token:
        return token

    authorization = headers.get('Authorization') or ''
    if authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        if token:
            return token

    return None


def has_credential_present(credential: Optional[str]) -> bool:
    """True if a credential string is present. Its validity is not checked."""
    return bool(credential and credential.strip())


def in_protected_tree(path: str, prefix: str) -> bool:
    """The prefix itself or anything below it; siblings like prefix-foo are outside."""
    return path == prefix or path.startswith(prefix.rstrip('/') + '/')


def is_gated_path(path: str, routes: GateRoutes = DEFAULT_ROUTES) -> bool:
    """Only the dashboard tree and the exact login path are gated."""
    return in_protected_tree(path, routes.protected_prefix) or path == routes.login_path


def evaluate_access(path: str, credential: Optional[str],
                    routes: GateRoutes = DEFAULT_ROUTES) -> GateDecision:
    """Decide redirect vs. pass-through for one request."""
    present = has_credential_present(credential)

    if in_protected_tree(path, routes.protected_prefix) and not present:
        return Redirect(routes.login_path)

    if path == routes.login_path and present:
        return Redirect(routes.dashboard_path)

    return PASS_THROUGH


def routes_from_config(config: Mapping) -> GateRoutes:
    return GateRoutes(
        protected_prefix=config.get('ACCESS_GATE_PROTECTED_PREFIX', DEFAULT_ROUTES.protected_prefix),
        dashboard_path=config.get('ACCESS_GATE_DASHBOARD_PATH', DEFAULT_ROUTES.dashboard_path),
        login_path=config.get('ACCESS_GATE_LOGIN_PATH', DEFAULT_ROUTES.login_path),
        cookie_name=config.get('ACCESS_GATE_COOKIE_NAME', DEFAULT_ROUTES.cookie_name),
    )


def init_access_gate(app) -> None:
    """
    Register the gate as a before_request hook.

    Requests outside the two gated patterns return immediately without
    reading any credential.
    """
    app.extensions['access_gate_routes'] = routes_from_config(app.config)

    @app.before_request
    def admin_access_gate():
        routes = current_app.extensions['access_gate_routes']
        path = request.path
        if not is_gated_path(path, routes):
            return None

        credential = extract_credential(request.cookies, request.headers, routes.cookie_name)
        decision = evaluate_access(path, credential, routes)
        if isinstance(decision, Redirect):
            logger.debug('Access gate redirect %s -> %s', path, decision.target)
            return redirect(decision.target)
        return None
