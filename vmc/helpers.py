from datetime import datetime, timezone

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def iso_timestamp(when: datetime = None) -> str:
    when = when or utcnow()
    return when.isoformat(timespec="milliseconds").replace("+00:00", "Z")

def elapsed_ms(since: datetime) -> int:
    return int((utcnow() - since).total_seconds() * 1000)
