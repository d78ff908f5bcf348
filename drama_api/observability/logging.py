from __future__ import annotations

import logging

from drama_api.observability.context import snapshot


class ContextFilter(logging.Filter):
    """Copies the bound request/user/conversation ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, value in snapshot().items():
            setattr(record, name, value)
        return True
