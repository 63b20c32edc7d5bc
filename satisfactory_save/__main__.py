import json
import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import MofNCompleteColumn, BarColumn, SpinnerColumn, TextColumn, Progress

from .exceptions import ValidationException
from .export import export_savegame
from .gui import SavegameBrowser
from .savegame import Savegame


def _read_savegame(sg, max_workers, dump_body):
    total = os.path.getsize(sg.filename)

    with \
            open(sg.filename, "rb") as fp, \
            Progress(
                SpinnerColumn(finished_text='[green]✔'),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=Console(stderr=True),
                transient=True,
            ) as progress:
        task = progress.add_task("Reading compressed chunks...", total=total)
        sg.read_compressed(
            iter(lambda: fp.read(65536), b""),
            on_chunk=lambda chunk: progress.update(task, completed=fp.tell()),
        )
        progress.update(task, completed=total)

    sg.decompress(max_workers=max_workers)

    if dump_body:
        with open(dump_body, "wb") as f:
            f.write(sg.data)

    sg.decode()


@click.command()
@click.argument("savegame", nargs=1, type=click.Path(exists=True, file_okay=True, dir_okay=False))
@click.option("--export-json", help="Export the savegame as JSON.", is_flag=True)
@click.option("--dump-body", help="Write the decompressed body to this file.", type=click.Path(dir_okay=False, writable=True))
@click.option("--max-workers", help="Number of threads decompressing chunks.", type=click.IntRange(min=1))
@click.option("--verbose", help="Log decoding progress.", is_flag=True)
def main(savegame, export_json, dump_body, max_workers, verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True))],
    )

    max_workers = \
        max_workers if max_workers is not None else \
        (os.cpu_count() or 1)

    sg = Savegame(savegame)
    try:
        _read_savegame(sg, max_workers, dump_body)
    except ValidationException as e:
        raise click.ClickException(f"Unsupported or corrupted save: {e}") from e

    if export_json:
        print(json.dumps(export_savegame(sg), allow_nan=False))
        return

    SavegameBrowser(sg).run()


if __name__ == "__main__":
    main()
