"""
Configuration data structure for bosun
Use services.load_config to retrieve a BosunConfig object
"""

from typing import Optional

DEFAULT_CONFIG = {
    "Main":
        {
            "Name": "bosun",
            "PluginDirectory": "/etc/bosun/plugins",
            "InstallDirectory": "/var/lib/bosun/plugins",
            "Database": "/var/lib/bosun/bosun.db",
            "IPAddress": "127.0.0.1",
            "Port": 8088,
            "DebugCapacity": 200,
            "IngestQueueSize": 1000,
            "PollInterval": 2,
        },
    "Marketplace":
        {
            "RegistryUrl": "",
            "RegistryTimeout": 10,
        }
}


class BosunConfig:
    def __init__(self,
                 name: str,
                 plugin_directory: str,
                 install_directory: str,
                 database: str,
                 ip_address: Optional[str],
                 port: Optional[int],
                 debug_capacity: int,
                 ingest_queue_size: int,
                 poll_interval: float,
                 registry_url: Optional[str],
                 registry_timeout: float):
        self.name = name
        self.plugin_directory = plugin_directory
        self.install_directory = install_directory
        self.database = database
        self.ip_address = ip_address
        self.port = port
        self.debug_capacity = debug_capacity
        self.ingest_queue_size = ingest_queue_size
        self.poll_interval = poll_interval
        self.registry_url = registry_url
        self.registry_timeout = registry_timeout
