"""
Operator Commands — small chat command table.

    embed <sample>      push a bundled sample payload through the pipeline
    debug <true|false>  toggle the raw-body debug sink
    disconnect [ms]     take the chat connection offline for a while
    ping                pong
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from . import config as cfg
from .service import RelayService

log = logging.getLogger("hookrelay.commands")

SAMPLE_DIR = Path(__file__).parent / "samples"

# key -> (event type, file)
SAMPLES: Dict[str, Tuple[str, str]] = {
    "build": ("Build Hook", "build.json"),
    "issue": ("Issue Hook", "issue.json"),
    "merge": ("Merge Request Hook", "merge.json"),
    "merge_request": ("Merge Request Hook", "merge.json"),
    "commit_comment": ("Note Hook", "note-commit.json"),
    "issue_comment": ("Note Hook", "note-issue.json"),
    "merge_comment": ("Note Hook", "note-merge.json"),
    "snippet": ("Note Hook", "note-snippet.json"),
    "pipeline": ("Pipeline Hook", "pipeline.json"),
    "push": ("Push Hook", "push.json"),
    "tag": ("Tag Push Hook", "tag.json"),
    "wiki": ("Wiki Page Hook", "wiki.json"),
    "unrelated": ("Unrelated", "unrelated.json"),
    # An issue event without object_attributes: exercises the error record
    "fake_error": ("Issue Hook", "unrelated.json"),
}

MIN_DISCONNECT_MS = 5000
MAX_DISCONNECT_MS = 3600000


@dataclass
class CommandMessage:
    """The chat message that invoked a command."""
    author_id: str
    reply: Callable[[str], Awaitable[None]]


Command = Callable[[RelayService, CommandMessage, List[str]], Awaitable[None]]


def load_sample(key: str) -> Tuple[str, bytes]:
    """(event type, raw body) for a sample key. Raises KeyError / OSError."""
    event_type, filename = SAMPLES[key]
    return event_type, (SAMPLE_DIR / filename).read_bytes()


async def cmd_embed(service: RelayService, msg: CommandMessage, args: List[str]) -> None:
    key = args[0] if args else ""
    if key not in SAMPLES:
        await msg.reply("Not a recognized argument")
        return
    try:
        event_type, body = load_sample(key)
    except OSError as exc:
        log.error(f"Reading sample {key}: {exc}")
        await msg.reply(f"There was a problem loading the sample data: {key}")
        return
    await msg.reply(f"Sending a sample embed: {key}")
    await service.process(event_type, body, "application/json", reply=msg.reply)


async def cmd_debug(service: RelayService, msg: CommandMessage, args: List[str]) -> None:
    choice = args[0].lower() if args else ""
    if choice in ("true", "on", "1"):
        service.set_debug(True)
    elif choice in ("false", "off", "0"):
        service.set_debug(False)
    await msg.reply(f"Debug mode is {'on' if service.debug_sink.enabled else 'off'}")


def _disconnect_ms(args: List[str]) -> int:
    try:
        ms = int(args[0]) if args else MIN_DISCONNECT_MS
    except ValueError:
        ms = MIN_DISCONNECT_MS
    return min(max(ms, MIN_DISCONNECT_MS), MAX_DISCONNECT_MS)


async def cmd_disconnect(service: RelayService, msg: CommandMessage, args: List[str]) -> None:
    ms = _disconnect_ms(args)
    if not service.master_user_id or msg.author_id != service.master_user_id:
        await msg.reply("You're not allowed to disconnect the bot!")
        return
    await msg.reply(
        f"Taking bot offline for {ms} ms. Commands will be ignored until after that time, "
        f"but the server will keep listening for HTTP requests."
    )
    await service.begin_maintenance(ms / 1000)


async def cmd_ping(service: RelayService, msg: CommandMessage, args: List[str]) -> None:
    await msg.reply("pong")


COMMANDS: Dict[str, Command] = {
    "embed": cmd_embed,
    "debug": cmd_debug,
    "disconnect": cmd_disconnect,
    "ping": cmd_ping,
}


def parse_command(text: str, prefix: str = cfg.COMMAND_PREFIX) -> Optional[Tuple[str, List[str]]]:
    """``"!embed push"`` -> ``("embed", ["push"])``; None when not a command."""
    if not text.startswith(prefix):
        return None
    parts = text[len(prefix):].lower().split()
    if not parts:
        return None
    return parts[0], parts[1:]


async def run_command(
    service: RelayService, text: str, msg: CommandMessage, prefix: str = cfg.COMMAND_PREFIX
) -> bool:
    """Run ``text`` if it names a known command. True when something ran."""
    parsed = parse_command(text, prefix)
    if parsed is None:
        return False
    name, args = parsed
    command = COMMANDS.get(name)
    if command is None:
        return False
    log.info(f"Command {name} {args} from {msg.author_id}")
    await command(service, msg, args)
    return True
