from typing import List, Dict, Optional, Tuple
import enum

from bosun.models.mapping import SensorMapping
from bosun.models.mapping_table import MappingTable
from bosun.utilities import time_now

# age thresholds in milliseconds
FLOWING_MS = 3000
CRITICAL_MS = 10000


class Freshness:
    """
    Liveness of a mapping. STALE carries a severity so displays can tell a
    recently stopped stream (WARNING) from a long dead one (CRITICAL).
    """

    class STATE(enum.Enum):
        FLOWING = 'flowing'
        STALE = 'stale'
        NO_DATA = 'no_data'

    class SEVERITY(enum.Enum):
        NONE = 'none'
        WARNING = 'warning'
        CRITICAL = 'critical'

    def __init__(self, state: 'Freshness.STATE',
                 severity: 'Freshness.SEVERITY' = SEVERITY.NONE,
                 age: Optional[int] = None):
        self.state = state
        self.severity = severity
        self.age = age

    def __repr__(self):
        return "<Freshness(state=%s, severity=%s, age=%r)>" % (
            self.state.value, self.severity.value, self.age)

    def __eq__(self, other):
        if not isinstance(other, Freshness):
            return NotImplemented
        return self.state == other.state and self.severity == other.severity

    def to_json(self) -> Dict:
        return {
            'state': self.state.value,
            'severity': self.severity.value,
            'age': self.age
        }


def classify(mapping: SensorMapping, now: Optional[int] = None) -> Freshness:
    if mapping.last_update is None:
        return Freshness(Freshness.STATE.NO_DATA)
    if now is None:
        now = time_now()
    age = now - mapping.last_update
    if age < FLOWING_MS:
        return Freshness(Freshness.STATE.FLOWING, age=age)
    if age < CRITICAL_MS:
        return Freshness(Freshness.STATE.STALE, Freshness.SEVERITY.WARNING, age=age)
    return Freshness(Freshness.STATE.STALE, Freshness.SEVERITY.CRITICAL, age=age)


class FreshnessMonitor:
    """
    Classifies the active mappings of a table at a point in time, keeps no
    state of its own
    """

    def __init__(self, table: MappingTable):
        self.table = table

    def report(self, now: Optional[int] = None) -> List[Tuple[SensorMapping, Freshness]]:
        if now is None:
            now = time_now()
        return [(mapping, classify(mapping, now))
                for mapping in self.table.snapshot() if mapping.active]
