from sqlalchemy.orm import Session
import logging

from bosun.errors import BosunError
from bosun.models.plugin import PluginRecord, record_from_instance
from bosun.models.mapping import MappingRecord
from bosun.models.plugin_store import PluginManifestStore
from bosun.models.mapping_table import MappingTable

log = logging.getLogger('bosun')


def load(db: Session, store: PluginManifestStore, table: MappingTable) -> None:
    """Restore plugins (in install order) and then their mappings"""
    for record in db.query(PluginRecord).order_by(PluginRecord.position):
        try:
            store.restore(record.to_instance())
        except (BosunError, ValueError) as e:
            log.error("Cannot restore plugin [%s]: %s" % (record.id, e))
    for record in db.query(MappingRecord).all():
        if record.plugin_id not in store:
            continue  # plugin was removed outside of bosun
        table.restore(record.to_mapping())


def save(db: Session, store: PluginManifestStore, table: MappingTable) -> None:
    """Write the current plugin and mapping state, removing stale rows"""
    plugin_records = dict((r.id, r) for r in db.query(PluginRecord).all())
    current_ids = set()
    for instance in store.list_instances():
        current_ids.add(instance.id)
        if instance.id in plugin_records:
            plugin_records[instance.id].update_from(instance)
        else:
            db.add(record_from_instance(instance))
    for plugin_id, record in plugin_records.items():
        if plugin_id not in current_ids:
            db.delete(record)

    mapping_records = dict(((r.slot_type, r.plugin_id, r.stream_id), r)
                           for r in db.query(MappingRecord).all())
    current_keys = set()
    for mapping in table.snapshot():
        key = (mapping.slot_type, mapping.plugin_id, mapping.stream_id)
        current_keys.add(key)
        if key in mapping_records:
            mapping_records[key].active = mapping.active
        else:
            db.add(MappingRecord(slot_type=mapping.slot_type,
                                 plugin_id=mapping.plugin_id,
                                 stream_id=mapping.stream_id,
                                 active=mapping.active))
    for key, record in mapping_records.items():
        if key not in current_keys:
            db.delete(record)
    db.commit()
