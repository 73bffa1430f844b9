from lazycommit.cli.main import run

run()
