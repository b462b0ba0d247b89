from batchrelay.cli.commands import app

app()
