from bosun.models.meta import Base
from bosun.models.slot import SlotCatalog, SlotDefinition
from bosun.models.manifest import PluginManifest, DataStreamDeclaration
from bosun.models.plugin import PluginInstance, PluginRecord
from bosun.models.plugin_store import PluginManifestStore
from bosun.models.stream import StreamDescriptor
from bosun.models.stream_catalog import StreamCatalog
from bosun.models.mapping import SensorMapping, MappingRecord
from bosun.models.mapping_table import MappingTable, IngestStats
from bosun.models.debug_tap import DebugTap, DebugEntry
from bosun.models.freshness import Freshness, FreshnessMonitor
from bosun.models.subscription import Subscription
