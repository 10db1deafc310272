"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdrf.cli.commands import check_cmd, generate_cmd, parse_cmd


app = typer.Typer(name="mdrf", no_args_is_help=True, help="MDRF review documents <-> YAML object model")

app.command(name="parse")(parse_cmd)
app.command(name="generate")(generate_cmd)
app.command(name="check")(check_cmd)
