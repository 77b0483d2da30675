pytest_plugins = [
    "conf_env",
    "conf_utils",
]
