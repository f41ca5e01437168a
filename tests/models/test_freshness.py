import unittest

from bosun.models.freshness import Freshness, FreshnessMonitor, classify
from bosun.models.mapping import SensorMapping
from bosun.models.mapping_table import MappingTable
from bosun.models.plugin_store import PluginManifestStore
from bosun.models.stream_catalog import StreamCatalog
from bosun.models.slot import SlotCatalog
from tests import helpers

STATE = Freshness.STATE
SEVERITY = Freshness.SEVERITY


class TestFreshness(unittest.TestCase):

    def test_classifies_by_age(self):
        mapping = SensorMapping('depth', 'sounder', 'depth', last_update=100000)
        expected = [(2999, Freshness(STATE.FLOWING)),
                    (3001, Freshness(STATE.STALE, SEVERITY.WARNING)),
                    (9999, Freshness(STATE.STALE, SEVERITY.WARNING)),
                    (10001, Freshness(STATE.STALE, SEVERITY.CRITICAL))]
        for (age, freshness) in expected:
            result = classify(mapping, now=100000 + age)
            self.assertEqual(result, freshness, "age %d" % age)
            self.assertEqual(result.age, age)

    def test_no_data(self):
        mapping = SensorMapping('depth', 'sounder', 'depth')
        self.assertEqual(classify(mapping, now=5000), Freshness(STATE.NO_DATA))
        self.assertEqual(classify(mapping).to_json(),
                         {'state': 'no_data', 'severity': 'none', 'age': None})

    def test_monitor_reports_active_mappings(self):
        store = PluginManifestStore()
        table = MappingTable(SlotCatalog(), StreamCatalog(store))
        store.install(helpers.driver_manifest('bmv-driver', streams=[
            ('house_v', 'battery_voltage'), ('start_v', 'battery_voltage')]))
        store.enable('bmv-driver')
        table.bind('battery_voltage', 'bmv-driver', 'house_v')
        table.ingest('bmv-driver', 'house_v', 12.6, 1000)
        table.bind('battery_voltage', 'bmv-driver', 'start_v')
        table.ingest('bmv-driver', 'start_v', 12.9, 2000)
        report = FreshnessMonitor(table).report(now=4500)
        self.assertEqual(len(report), 1)
        (mapping, freshness) = report[0]
        self.assertEqual(mapping.stream_id, 'start_v')
        self.assertEqual(freshness, Freshness(STATE.FLOWING))
