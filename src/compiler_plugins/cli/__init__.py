"""
CLI Subpackage.

Command-line entry points for inspecting and running the plugin pipeline.

Modules:
    - ``__main__``: The argparse definition and dispatcher.
    - ``handlers/*``: Implementation of each command (discover, build).
"""
