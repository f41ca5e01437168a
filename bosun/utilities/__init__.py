from .time import (time_now,
                   timestamp_to_human,
                   human_to_timestamp)
from .misc import (parse_version, is_newer)
