from datetime import datetime, timedelta
from decimal import Decimal

ONE_NIGHT = timedelta(days=1)


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """Whole nights billed for a stay: partial days round up, minimum one."""
    days, remainder = divmod(check_out - check_in, ONE_NIGHT)
    if remainder:
        days += 1
    return max(1, days)


def calculate_price(nightly_rate, check_in: datetime, check_out: datetime) -> Decimal:
    rate = Decimal(str(nightly_rate))
    if rate <= 0:
        raise ValueError(f"nightly rate must be positive, got {rate}")
    return rate * count_nights(check_in, check_out)
