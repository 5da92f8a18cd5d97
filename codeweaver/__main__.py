# codeweaver/__main__.py
from .cli import app

app(prog_name="codeweaver")
