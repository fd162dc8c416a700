"""
nodeflow.config.defaults - Default configuration values.
"""

CONFIG_FILENAME = ".nodeflow.toml"

ENV_PREFIX = "NODEFLOW_"

DEFAULT_CONFIG = {
    "editor": {
        "default_label": "New Node",
        "default_kind": "defaultNode",
    },
    "export": {
        "filename": "flowchart.json",
        "indent": 2,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5173,
        "cors": True,
    },
    "logging": {
        "level": "WARNING",
    },
}
