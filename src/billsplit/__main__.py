from billsplit.cli import run

run()
