"""Unified exception taxonomy.

Every error raised by the geometry engine, the source adapters, the
verification orchestrator and the capture session derives from
``ComplianceError``.  The structured fields let the HTTP ingress pick a
status code and let operators grep logs by ``code`` without parsing
messages.

Taxonomy categories
-------------------
- ``ValidationError``: bad input or an illegal state transition.
- ``TransientError``: network trouble or throttling; the caller may retry.
- ``PermanentError``: a domain failure that retrying will not fix.
- ``ContractError``: a request or response that does not match its schema.

``to_error_dict()`` renders the same keys for every exception, so log
lines and error bodies stay stable as new subclasses are added.
"""

from __future__ import annotations


class ComplianceError(Exception):
    """Base exception for all parcel-compliance errors.

    Attributes:
        message: Human-readable error description.
        stage: Component that raised the error
            (e.g. ``"capture"``, ``"source"``).
        code: Machine-readable error code (e.g. ``"INVALID_COORDINATE"``).
        retryable: Whether the caller may retry the operation.
        correlation_id: Request correlation identifier.
    """

    default_stage: str = ""
    default_code: str = ""
    default_retryable: bool = False
    #: Fixed category for the category base classes; ``None`` derives it
    #: from ``retryable``.
    fixed_category: str | None = None

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool | None = None,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Taxonomy bucket used for HTTP mapping and log filtering."""
        if self.fixed_category is not None:
            return self.fixed_category
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(ComplianceError):
    """Rejected input or state transition. Never retryable."""

    fixed_category = "validation"


class TransientError(ComplianceError):
    """Failure that may clear up on its own."""

    fixed_category = "transient"
    default_retryable = True


class PermanentError(ComplianceError):
    """Domain failure that a retry will not fix."""

    fixed_category = "permanent"


class ContractError(ComplianceError):
    """Payload does not match the agreed schema. Never retryable."""

    fixed_category = "contract"
