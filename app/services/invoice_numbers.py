import re
from datetime import datetime

PREFIX = "INV"


def month_prefix(when: datetime) -> str:
    return f"{PREFIX}-{when.year:04d}{when.month:02d}-"


def format_invoice_number(when: datetime, sequence: int) -> str:
    return f"{month_prefix(when)}{sequence:03d}"


def next_invoice_number(store, when: datetime) -> str:
    """
    Next ``INV-YYYYMM-NNN`` number for the month of ``when``.

    The sequence continues from the highest number already issued that month,
    so deleting an invoice never makes an existing number come round again.
    The read and the later insert are not atomic; callers must be ready for
    the insert to fail with a duplicate and ask again.
    """
    prefix = month_prefix(when)
    pattern = re.compile(re.escape(prefix) + r"(\d+)$")
    highest = 0
    for number in store.numbers_with_prefix(prefix):
        match = pattern.match(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return format_invoice_number(when, highest + 1)
