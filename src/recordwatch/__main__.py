from recordwatch.cli.main import cli

cli()
