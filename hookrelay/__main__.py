"""
hookrelay CLI — GitLab webhook to Discord relay.

Usage:
    python3 -m hookrelay start              Start the webhook server (foreground)
    python3 -m hookrelay samples            List bundled sample payloads
    python3 -m hookrelay send <sample>      POST a sample to the running server
    python3 -m hookrelay command <text...>  Run one operator command in-process
    python3 -m hookrelay config             Show effective configuration
"""

import asyncio
import inspect
import logging
import sys

from . import config as cfg

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("hookrelay")


async def cmd_start(args):
    """Start the webhook server."""
    import uvicorn

    print("hookrelay v1.0.0")
    print(f"  Host: {cfg.RELAY_HOST}:{cfg.RELAY_PORT}")
    print(f"  Chat webhook: {'configured' if cfg.DISCORD_WEBHOOK_URL else 'NOT SET'}")
    print(f"  Token: {'configured' if cfg.WEBHOOK_TOKEN else 'NOT SET (all requests rejected)'}")
    print("  Endpoint: POST /<any path>")
    print()

    config = uvicorn.Config(
        "hookrelay.server:create_app",
        factory=True,
        host=cfg.RELAY_HOST,
        port=cfg.RELAY_PORT,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def cmd_samples(args):
    """List sample payload keys."""
    from .commands import SAMPLES

    print("Sample payloads")
    print("=" * 55)
    for key, (event_type, filename) in SAMPLES.items():
        print(f"  {key:15s} {event_type:22s} {filename}")


async def cmd_send(args):
    """POST a sample payload to the running server."""
    import httpx
    from .commands import SAMPLES, load_sample

    if not args or args[0] not in SAMPLES:
        print(f"Usage: python3 -m hookrelay send <{'|'.join(SAMPLES)}>")
        sys.exit(1)

    event_type, body = load_sample(args[0])
    url = f"http://{cfg.RELAY_HOST}:{cfg.RELAY_PORT}/"
    headers = {
        "content-type": "application/json",
        cfg.AUTH_HEADER: cfg.WEBHOOK_TOKEN,
        cfg.EVENT_HEADER: event_type,
    }
    async with httpx.AsyncClient(timeout=10) as client:
        try:
            resp = await client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            print(f"Server not reachable at {url}: {e}")
            print("Start the server first: python3 -m hookrelay start")
            return
    print(f"  {args[0]:15s} -> HTTP {resp.status_code}")


async def cmd_command(args):
    """Run one operator command against a freshly connected service."""
    from .commands import CommandMessage, run_command
    from .service import build_service

    async def reply(text: str) -> None:
        print(f"  > {text}")

    service = build_service()
    await service.connection.connect()
    try:
        text = cfg.COMMAND_PREFIX + " ".join(args)
        ran = await run_command(service, text, CommandMessage(author_id=cfg.MASTER_USER_ID, reply=reply))
        if not ran:
            print(f"Unknown command: {' '.join(args)}")
    finally:
        await service.stop()


def cmd_config(args):
    """Show effective configuration with secrets masked."""
    from .handlers import supported_events

    print("hookrelay configuration")
    print("=" * 55)
    print(f"  Listen:          {cfg.RELAY_HOST}:{cfg.RELAY_PORT}")
    print(f"  Token:           {'configured' if cfg.WEBHOOK_TOKEN else 'NOT SET'}")
    print(f"  Auth header:     {cfg.AUTH_HEADER}")
    print(f"  Event header:    {cfg.EVENT_HEADER}")
    print(f"  Chat webhook:    {'configured' if cfg.DISCORD_WEBHOOK_URL else 'NOT SET'}")
    print(f"  Debug webhook:   {'configured' if cfg.DISCORD_DEBUG_WEBHOOK_URL else 'NOT SET'}")
    print(f"  GitLab base URL: {cfg.GITLAB_BASE_URL}")
    print(f"  Poll interval:   {cfg.POLL_INTERVAL}s (probe every {cfg.PROBE_INTERVAL}s)")
    print(f"  Caps:            title={cfg.TITLE_CAP} description={cfg.DESCRIPTION_CAP} "
          f"field={cfg.FIELD_VALUE_CAP} snippet={cfg.SNIPPET_CAP}")
    print(f"  Debug sink:      {'on' if cfg.DEBUG else 'off'}")
    print(f"  Message limits:  {cfg.MAX_EMBEDS_PER_MESSAGE} embeds, "
          f"{cfg.MAX_EMBED_CHARS_PER_MESSAGE} chars")
    print(f"  Event types:     {', '.join(supported_events())}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python3 -m hookrelay <command>")
        print()
        print("Commands:")
        print("  start       Start webhook server (foreground)")
        print("  samples     List bundled sample payloads")
        print("  send        POST a sample payload to the running server")
        print("  command     Run one operator command (e.g. 'embed push')")
        print("  config      Show effective configuration")
        sys.exit(1)

    cmd = sys.argv[1]
    commands = {
        "start": cmd_start,
        "samples": cmd_samples,
        "send": cmd_send,
        "command": cmd_command,
        "config": cmd_config,
    }

    handler = commands.get(cmd)
    if not handler:
        print(f"Unknown command: {cmd}")
        sys.exit(1)

    if inspect.iscoroutinefunction(handler):
        asyncio.run(handler(sys.argv[2:]))
    else:
        handler(sys.argv[2:])


if __name__ == "__main__":
    main()
