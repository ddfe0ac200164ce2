"""Per-request overrides for the App Store Server API client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .retry import RetryPolicy


@dataclass(frozen=True)
class RequestOptions:
    headers: Mapping[str, str] | None = None
    retry_policy: RetryPolicy | None = None
