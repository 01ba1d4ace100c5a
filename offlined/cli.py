"""offlined CLI: run the daemon and inspect offline state.

Process management (start/stop/status) finds the daemon with psutil.
Queue and partition commands read local storage directly, so they work
whether or not the daemon is running; ``drain`` asks the running daemon.
"""

import asyncio
import builtins
import subprocess
import sys
import time
from pathlib import Path

import click
import httpx
import psutil

from offline_library.cache.store import CacheStore
from offline_library.config import create_default_config
from offline_library.config import get_config_path
from offline_library.config import load_config
from offline_library.queue.manager import WriteQueue
from offline_library.storage.paths import get_log_dir


def find_daemon_processes() -> list[psutil.Process]:
    """Find running daemon processes (``python -m offlined``).

    Returns:
        List of daemon Process objects, excluding this CLI
    """
    current_pid = psutil.Process().pid
    daemon_processes = []

    for proc in psutil.process_iter(["pid", "cmdline", "status"]):
        try:
            if proc.info["pid"] == current_pid:
                continue
            if proc.info["status"] in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
                continue

            cmdline = proc.info["cmdline"]
            if not cmdline or "-m" not in cmdline:
                continue
            module_index = cmdline.index("-m") + 1
            if module_index < len(cmdline) and cmdline[module_index] == "offlined":
                daemon_processes.append(proc)

        except (psutil.NoSuchProcess, psutil.AccessDenied, ValueError, IndexError):
            continue

    return daemon_processes


def get_daemon_status() -> tuple[bool, int | None]:
    """Check if daemon is running.

    Returns:
        Tuple of (is_running, pid)
    """
    processes = find_daemon_processes()
    if processes:
        return True, processes[0].pid
    return False, None


def daemon_url() -> str:
    config = load_config()
    host = "127.0.0.1" if config.host in ("0.0.0.0", "::") else config.host
    return f"http://{host}:{config.port}"


@click.group()
def cli():
    """offlined - offline cache, write queue and sync daemon."""
    pass


@cli.command()
def serve():
    """Run the daemon in the foreground."""
    from .__main__ import main as run_daemon

    run_daemon()


@cli.command()
def start():
    """Start the daemon in the background."""
    running, pid = get_daemon_status()
    if running:
        click.echo(f"Daemon already running (PID {pid})")
        return

    daemon_log = get_log_dir() / "daemon.log"
    click.echo("Starting daemon...")
    with builtins.open(daemon_log, "a") as log_file:
        subprocess.Popen(
            [sys.executable, "-m", "offlined"],
            stdout=log_file,
            stderr=log_file,
            start_new_session=True,
        )

    for _ in range(10):
        time.sleep(0.5)
        running, pid = get_daemon_status()
        if running:
            click.echo(f"Daemon started (PID {pid}, logs: {daemon_log})")
            return
    click.echo("Warning: Daemon may not have started successfully", err=True)


@cli.command()
@click.option("--timeout", default=5, help="Seconds to wait before force kill")
def stop(timeout: int):
    """Stop the background daemon."""
    processes = find_daemon_processes()
    if not processes:
        click.echo("Daemon not running")
        return

    for proc in processes:
        try:
            click.echo(f"Stopping daemon (PID {proc.pid})...")
            proc.terminate()
            try:
                proc.wait(timeout=timeout)
            except psutil.TimeoutExpired:
                click.echo("Daemon did not stop gracefully, force killing...")
                proc.kill()
                proc.wait(timeout=2)
            click.echo("Daemon stopped")
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            click.echo(f"Failed to stop daemon: {e}", err=True)


@cli.command()
def status():
    """Show daemon and engine status."""
    running, pid = get_daemon_status()

    click.echo("offlined Status:")
    click.echo("-" * 40)
    if not running:
        click.echo("Daemon:   ✗ Not running")
        return
    click.echo(f"Daemon:   ✓ Running (PID {pid})")

    try:
        response = httpx.get(f"{daemon_url()}/_offline/status", timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        click.echo(f"Engine:   unavailable ({e})", err=True)
        return

    data = response.json()
    click.echo(f"Version:  {data['version']} ({data['state']})")
    click.echo(f"Active:   {data.get('activeVersion') or '-'}")
    if data.get("waitingVersion"):
        click.echo(f"Waiting:  {data['waitingVersion']}")
    click.echo(f"Online:   {'yes' if data['online'] else 'no'}")
    click.echo(f"Pending:  {data['pendingWrites']} queued writes ({data['syncState']})")


@cli.command()
def partitions():
    """List cache partitions."""

    async def _list():
        store = CacheStore()
        rows = []
        for name in sorted(await store.list_partitions()):
            descriptor = await store.describe(name)
            rows.append((name, descriptor.version if descriptor else "?", len(await store.entries(name))))
        return rows

    rows = asyncio.run(_list())
    if not rows:
        click.echo("No cache partitions")
        return
    for name, version, count in rows:
        click.echo(f"{name:<24} version={version:<10} entries={count}")


@cli.group()
def queue():
    """Inspect and manage the write queue."""
    pass


@queue.command("list")
def queue_list():
    """List pending writes in replay order."""
    entries = asyncio.run(WriteQueue().list_pending())
    if not entries:
        click.echo("Write queue is empty")
        return
    for entry in entries:
        line = f"{entry.sequence:>4}  {entry.id}  {entry.method} {entry.endpoint}  attempts={entry.attempt_count}"
        if entry.last_error:
            line += f"  last_error={entry.last_error}"
        click.echo(line)


@queue.command("cancel")
@click.argument("entry_id")
def queue_cancel(entry_id: str):
    """Cancel a pending write so it is never replayed."""
    if asyncio.run(WriteQueue().cancel(entry_id)):
        click.echo(f"Cancelled {entry_id}")
    else:
        click.echo(f"Queued write not found: {entry_id}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--tag", default="background-sync", help="Sync tag to deliver")
def drain(tag: str):
    """Ask the running daemon to drain the write queue."""
    try:
        response = httpx.post(f"{daemon_url()}/_offline/sync", json={"tag": tag}, timeout=60.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        click.echo(f"Error: drain failed ({e})", err=True)
        sys.exit(1)

    report = response.json()
    if report["coalesced"]:
        click.echo("A drain was already running")
        return
    click.echo(
        f"Replayed {len(report['succeeded'])} of {report['attempted']} writes, "
        f"{len(report['failed'])} failed, {report['remaining']} remaining"
    )
    for rejection in report["rejected"]:
        click.echo(f"  rejected {rejection['entryId']} ({rejection['endpoint']}): status {rejection['status']}")


@cli.command("init-config")
@click.option("--path", type=click.Path(path_type=Path), default=None, help="Config file location")
def init_config(path: Path | None):
    """Write the default configuration file if missing."""
    target = path or get_config_path()
    if target.exists():
        click.echo(f"Config already exists at {target}")
        return
    click.echo(f"Created {create_default_config(target)}")


@cli.command()
@click.option("-n", "--lines", default=50, help="Number of lines to show")
def logs(lines: int):
    """Show the background daemon's log."""
    log_file = get_log_dir() / "daemon.log"
    if not log_file.exists():
        click.echo(f"No logs found at {log_file}")
        return
    with builtins.open(log_file) as f:
        for line in f.readlines()[-lines:]:
            click.echo(line.rstrip())


def main():
    """Entry point for offlined CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(0)
