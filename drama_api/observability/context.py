from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Dict, List, Optional, Tuple

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
conversation_id_ctx: ContextVar[Optional[str]] = ContextVar("conversation_id", default=None)

_VARS: Dict[str, ContextVar] = {
    "request_id": request_id_ctx,
    "user_id": user_id_ctx,
    "conversation_id": conversation_id_ctx,
}

Bound = List[Tuple[ContextVar, Token]]


def bind(**ids: Optional[str]) -> Bound:
    """Set ids for the current task, e.g. bind(user_id=str(user.id))"""
    return [(_VARS[name], _VARS[name].set(value)) for name, value in ids.items()]


def unbind(bound: Bound) -> None:
    for var, token in reversed(bound):
        var.reset(token)


def snapshot() -> Dict[str, str]:
    """Current ids, "-" where unset"""
    return {name: var.get() or "-" for name, var in _VARS.items()}
