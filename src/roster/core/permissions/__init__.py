"""Company isolation policy."""

from roster.core.permissions.policy import TenantScope


__all__ = ["TenantScope"]
