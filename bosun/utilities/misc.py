import re
from typing import List


def parse_version(version: str) -> List[int]:
    # only the major.minor.patch components are compared,
    # non numeric parts count as 0
    version = version.strip()
    if version.startswith('v'):
        version = version[1:]
    parts = []
    for part in version.split('.')[:3]:
        match = re.match(r'^(\d+)', part)
        parts.append(int(match.group(1)) if match is not None else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts


def is_newer(latest: str, current: str) -> bool:
    """
    True if version string [latest] is strictly newer than [current]
    """
    return parse_version(latest) > parse_version(current)
