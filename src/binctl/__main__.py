from binctl.cli import cli

cli()
