"""
LedgerLimits -- tunables the ledger reads at runtime.

The kernel never reads config files or environment variables; an outer
layer (``inventory_config.bridges``) builds a LedgerLimits and hands it to
the service.  Defaults here match ``inventory_config/defaults.yaml``.
"""

from dataclasses import dataclass

# Largest value the 32-bit quantity columns can hold.
QUANTITY_COLUMN_MAX = 2_147_483_647


@dataclass(frozen=True)
class LedgerLimits:
    """Bounds and timeouts for ledger operations."""

    lock_timeout_ms: int = 5000
    code_allocation_attempts: int = 3
    default_page_size: int = 20
    max_page_size: int = 100
    max_remarks_length: int = 1000
    max_actor_length: int = 450
    max_quantity: int = QUANTITY_COLUMN_MAX

    def __post_init__(self) -> None:
        for name in (
            "lock_timeout_ms",
            "code_allocation_attempts",
            "default_page_size",
            "max_page_size",
            "max_remarks_length",
            "max_actor_length",
            "max_quantity",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) exceeds "
                f"max_page_size ({self.max_page_size})"
            )
        if self.max_quantity > QUANTITY_COLUMN_MAX:
            raise ValueError(
                f"max_quantity ({self.max_quantity}) exceeds the column "
                f"maximum ({QUANTITY_COLUMN_MAX})"
            )


DEFAULT_LIMITS = LedgerLimits()
