from folio.main import run

run()
