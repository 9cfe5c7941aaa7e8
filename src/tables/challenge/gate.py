"""
Ownership gate.

The caller's uid is resolved once per query from the process metadata; each
path is then allowed only when its owning uid matches. Denial is a routine
outcome and is reported, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from core.enums import AccessOutcome
from core.logging import get_logger

from ..exceptions import IdentityResolutionError

if TYPE_CHECKING:
    from core.audit_logging import AccessAuditLogger
    from metadata.provider import MetadataProvider

LOGGER = get_logger("tables.challenge.gate")


@dataclass(frozen=True, slots=True)
class AccessDecision:
    path: str
    outcome: AccessOutcome
    owner_uid: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is AccessOutcome.ALLOWED


def resolve_caller_uid(provider: "MetadataProvider") -> str:
    """
    Return the owning uid of the process serving the query.

    Raises:
        IdentityResolutionError: If osquery_info or the matching processes
            lookup does not return exactly one row
    """
    info = provider.select_all_from("osquery_info")
    if len(info) != 1:
        raise IdentityResolutionError("osquery_info", len(info))

    processes = provider.select_all_from("processes", "pid", info[0]["pid"])
    if len(processes) != 1:
        raise IdentityResolutionError("processes", len(processes))

    return str(processes[0]["uid"])


def authorize(
    provider: "MetadataProvider",
    path: str,
    caller_uid: str,
    *,
    table: str = "",
    audit: Optional["AccessAuditLogger"] = None,
) -> AccessDecision:
    """Decide whether ``path`` may be read on behalf of ``caller_uid``."""
    rows = provider.select_all_from("file", "path", path)
    if not rows:
        LOGGER.debug("No file metadata for %s; skipping", path)
        return AccessDecision(path, AccessOutcome.MISSING)

    owner_uid = str(rows[0].get("uid"))
    if owner_uid != caller_uid:
        LOGGER.info("Not allowed to read %s (owner uid %s, caller uid %s)", path, owner_uid, caller_uid)
        decision = AccessDecision(path, AccessOutcome.DENIED, owner_uid)
    else:
        decision = AccessDecision(path, AccessOutcome.ALLOWED, owner_uid)

    if audit is not None:
        audit.record(table, path, decision.outcome, caller_uid, owner_uid)
    return decision
