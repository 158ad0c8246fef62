from importlib import metadata

entry_points = metadata.entry_points()
commands = entry_points.select(group="rangetiff.cli.commands")
