"""Size calculator: maps total memory to a zram device size."""

from zram_setup.errors import InsufficientMemory
from zram_setup.models import SizeBracket, SizePlan

MIN_SIZE_MB = 256
SMALL_LIMIT_MB = 2048
MEDIUM_LIMIT_MB = 8192
# Caps compression CPU overhead on large hosts
LARGE_CAP_MB = 6144


def compute_size(total_memory_mb: int, override: int | None = None) -> SizePlan:
    """
    Compute the device size for a host.

    Small hosts (<2GB) get 25% of RAM, medium hosts (<8GB) 50%, and large
    hosts 50% capped at 6GB. A positive override replaces the bracket rules
    but is still subject to the minimum size.

    Args:
        total_memory_mb: Total physical memory in megabytes.
        override: Operator-chosen size in megabytes, if any.

    Raises:
        InsufficientMemory: The resulting size is below MIN_SIZE_MB.
    """
    if override is not None and override > 0:
        plan = SizePlan(
            total_memory_mb=total_memory_mb,
            target_size_mb=override,
            bracket=None,
            overridden=True,
        )
    elif total_memory_mb < SMALL_LIMIT_MB:
        plan = SizePlan(total_memory_mb, total_memory_mb // 4, SizeBracket.SMALL, False)
    elif total_memory_mb < MEDIUM_LIMIT_MB:
        plan = SizePlan(total_memory_mb, total_memory_mb // 2, SizeBracket.MEDIUM, False)
    else:
        plan = SizePlan(
            total_memory_mb,
            min(total_memory_mb // 2, LARGE_CAP_MB),
            SizeBracket.LARGE,
            False,
        )

    if plan.target_size_mb < MIN_SIZE_MB:
        raise InsufficientMemory(total_memory_mb, plan.target_size_mb, MIN_SIZE_MB)
    return plan


def disksize_literal(size_mb: int) -> str:
    """
    Value written to the disksize control file.

    Sizes of 1GB and more are truncated to whole gigabytes, so 1536
    becomes "1G".
    """
    if size_mb >= 1024:
        return f"{size_mb // 1024}G"
    return f"{size_mb}M"
