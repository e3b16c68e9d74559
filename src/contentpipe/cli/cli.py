"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from contentpipe.cli.commands import (
    check_cmd,
    configure_logging,
    import_cmd,
    init_cmd,
    tags_cmd,
    translate_cmd,
)


app = typer.Typer(name="contentpipe", no_args_is_help=True, help="HTML content import and transformation pipeline")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    ):
    configure_logging(verbose)


app.command(name="init")(init_cmd)
app.command(name="import")(import_cmd)
app.command(name="check")(check_cmd)
app.command(name="tags")(tags_cmd)
app.command(name="translate")(translate_cmd)
