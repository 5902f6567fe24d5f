from incinerator.cli import app

app(prog_name="incinerator")
