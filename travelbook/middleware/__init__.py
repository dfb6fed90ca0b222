"""
Middleware package for Travelbook.
"""
from .access_gate import (
    PASS_THROUGH,
    GateRoutes,
    PassThrough,
    Redirect,
    evaluate_access,
    extract_credential,
    has_credential_present,
    init_access_gate,
)
