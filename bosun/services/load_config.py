import os
import configparser
import ipaddress

import yarl

from bosun.models import config
from bosun.errors import ConfigurationError

"""
# Example configuration (including optional lines)

[Main]
  Name = bosun
  PluginDirectory = /etc/bosun/plugins
  InstallDirectory = /var/lib/bosun/plugins
  Database = /var/lib/bosun/bosun.db
  IPAddress = 127.0.0.1
  Port = 8088
  DebugCapacity = 200
  IngestQueueSize = 1000
  PollInterval = 2
[Marketplace]
  RegistryUrl = https://example.com/bosun-plugins/registry.json
  RegistryTimeout = 10
"""


def run(custom_values=None, verify=True) -> config.BosunConfig:
    """provide a dict INI configuration to override defaults
       if verify is True, perform checks on settings to make sure they are appropriate"""
    my_configs = configparser.ConfigParser()
    my_configs.read_dict(config.DEFAULT_CONFIG)
    if custom_values is not None:
        my_configs.read_dict(custom_values)

    main_config = my_configs['Main']
    # Node name
    node_name = main_config['Name']
    if node_name.strip() == '':
        raise ConfigurationError("Name must not be empty")

    # PluginDirectory
    plugin_directory = main_config['PluginDirectory']
    if not os.path.isdir(plugin_directory) and verify:
        raise ConfigurationError(
            "PluginDirectory [%s] does not exist" % plugin_directory)
    # InstallDirectory
    install_directory = main_config['InstallDirectory']
    if verify:
        try:
            os.makedirs(install_directory, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                "InstallDirectory [%s] cannot be created" % install_directory) from e

    # Database, a bare path is a sqlite file
    database = main_config['Database']
    if database == '':
        raise ConfigurationError("Missing [Database] configuration")
    if '://' not in database:
        if verify and not os.path.isdir(os.path.dirname(os.path.abspath(database))):
            raise ConfigurationError(
                "Database directory for [%s] does not exist" % database)
        database = "sqlite:///" + database

    # IPAddress
    ip_address = main_config['IPAddress']
    try:
        ipaddress.ip_address(ip_address)
    except ValueError as e:
        raise ConfigurationError("IPAddress is invalid") from e
    # Port
    try:
        port = int(main_config['Port'])
        if port < 0 or port > 65535:
            raise ValueError()
    except ValueError as e:
        raise ConfigurationError("Port must be between 0 - 65535") from e

    # DebugCapacity
    try:
        debug_capacity = int(main_config['DebugCapacity'])
        if debug_capacity <= 0:
            raise ValueError()
    except ValueError:
        raise ConfigurationError("DebugCapacity must be a postive number")

    # IngestQueueSize
    try:
        ingest_queue_size = int(main_config['IngestQueueSize'])
        if ingest_queue_size <= 0:
            raise ValueError()
    except ValueError:
        raise ConfigurationError("IngestQueueSize must be a postive number")

    # PollInterval
    try:
        poll_interval = float(main_config['PollInterval'])
        if poll_interval <= 0:
            raise ValueError()
    except ValueError:
        raise ConfigurationError("PollInterval must be a postive number")

    marketplace_config = my_configs['Marketplace']
    # RegistryUrl, empty disables the marketplace
    registry_url = marketplace_config['RegistryUrl'].strip()
    if registry_url != '':
        url = yarl.URL(registry_url)
        if url.scheme not in ['http', 'https'] or url.host is None:
            raise ConfigurationError("RegistryUrl [%s] is not an http(s) URL" % registry_url)
    # RegistryTimeout
    try:
        registry_timeout = float(marketplace_config['RegistryTimeout'])
        if registry_timeout <= 0:
            raise ValueError()
    except ValueError:
        raise ConfigurationError("RegistryTimeout must be a postive number")

    return config.BosunConfig(
        name=node_name,
        plugin_directory=plugin_directory,
        install_directory=install_directory,
        database=database,
        ip_address=ip_address,
        port=port,
        debug_capacity=debug_capacity,
        ingest_queue_size=ingest_queue_size,
        poll_interval=poll_interval,
        registry_url=registry_url,
        registry_timeout=registry_timeout
    )
