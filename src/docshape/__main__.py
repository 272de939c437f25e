from docshape.cli.app import app

app(prog_name="docshape")
