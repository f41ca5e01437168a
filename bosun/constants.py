class EndPoints:
    root = '/'
    version = '/version'
    version_json = '/version.json'
    # --- slots and streams ---
    slots = '/slots.json'
    streams = '/streams.json'
    # --- plugins ---
    plugins = '/plugins.json'
    plugin = '/plugin.json'
    plugin_enable = '/plugin/enable.json'
    plugin_disable = '/plugin/disable.json'
    # --- mappings ---
    mappings = '/mappings.json'
    mapping = '/mapping.json'
    mappings_auto = '/mappings/auto.json'
    # --- drivers and diagnostics ---
    ingest = '/ingest.json'
    ingest_packet = '/ingest/packet.json'
    debug = '/debug.json'
    sensors = '/sensors.json'
    monitor = '/monitor'
    # --- marketplace ---
    registry = '/registry.json'
    registry_install = '/registry/install.json'
