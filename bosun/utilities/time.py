import datetime
import dateparser


def time_now() -> int:
    """
    :return:     current time in UNIX milliseconds
    """
    return int(datetime.datetime.now().timestamp() * 1e3)


def timestamp_to_human(timestamp: int) -> str:
    """Millisecond timestamp as a local time string, e.g. for the CLI tables"""
    moment = datetime.datetime.fromtimestamp(timestamp / 1e3)
    return moment.strftime("%a, %d %b %Y %H:%M:%S")


def human_to_timestamp(value: str) -> int:
    """
    Millisecond timestamp from a numeric timestamp, a date, or a relative
    time such as "5 minutes ago". Raises ValueError if [value] is not a time.
    """
    if value.strip().isdigit():
        return int(value)
    moment = dateparser.parse(value)
    if moment is None:
        raise ValueError("cannot parse time [%s]" % value)
    return int(moment.timestamp() * 1e3)
