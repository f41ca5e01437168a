__version__ = "0.4.0"

from bosun.models.slot import SlotCatalog
from bosun.models.plugin import PluginInstance
from bosun.models.engine import SensorEngine
from bosun import utilities
