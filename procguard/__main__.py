from procguard.main import run

run()
