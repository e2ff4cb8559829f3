"""Rest timer command."""

import time
from typing import Annotated, Optional

import typer

from ...core.config import TICK_SECONDS
from ...core.engine.config_loader import load_model_config
from ...core.rest_timer import RestPolicy, RestTimer
from ...core.scheduling import TickScheduler
from .. import views
from ..app import DataDirOption, app, get_store, handle_errors


@app.command()
def rest(
    seconds: Annotated[
        Optional[int],
        typer.Argument(help="Rest length in seconds (default: by set type)"),
    ] = None,
    set_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Size the rest for a set type"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Count down a rest period in the foreground.

    Ctrl+C skips the rest of the countdown.
    """
    policy = RestPolicy.from_config(load_model_config(get_store(data_dir).data_dir))
    scheduler = TickScheduler()
    timer = RestTimer(scheduler, on_complete=views.console.bell, policy=policy)

    with handle_errors():
        if seconds is not None:
            timer.start(seconds)
        else:
            timer.start_for_set_type(set_type)

    total = timer.total_seconds
    with views.console.status(views.rest_status_text(timer.snapshot())) as status:
        unsubscribe = timer.subscribe(lambda snap: status.update(views.rest_status_text(snap)))
        try:
            while timer.is_active:
                time.sleep(TICK_SECONDS)
                scheduler.advance(TICK_SECONDS)
        except KeyboardInterrupt:
            timer.skip()
            views.print_info("Rest skipped.")
            raise typer.Exit(0)
        finally:
            unsubscribe()

    views.print_success(f"Rest over ({total}s)")
