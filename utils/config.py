"""Environment-driven settings for the chat relay."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class RelayConfig:
    """
    Runtime settings read from the environment (or a .env file).

    - HOST / PORT: where uvicorn listens (defaults 0.0.0.0:3000).
    - SEND_TIMEOUT_SECONDS: upper bound for one websocket send during fan-out.
    - PUBLIC_DIR: directory holding the static client (index.html and assets).
    - LOG_LEVEL: standard logging level name.

    Invalid values raise RuntimeError naming the offending variable.
    """

    host: str = "0.0.0.0"
    port: int = 3000
    send_timeout: float = 5.0
    public_dir: Path = BASE_DIR / "public"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        host = (os.getenv("HOST") or "").strip() or cls.host

        raw_port = (os.getenv("PORT") or "").strip()
        port = cls.port
        if raw_port:
            try:
                port = int(raw_port)
            except ValueError as exc:
                raise RuntimeError(f"PORT={raw_port!r} is not an integer") from exc
            if not 0 < port < 65536:
                raise RuntimeError(f"PORT={raw_port!r} must be between 1 and 65535")

        raw_timeout = (os.getenv("SEND_TIMEOUT_SECONDS") or "").strip()
        send_timeout = cls.send_timeout
        if raw_timeout:
            try:
                send_timeout = float(raw_timeout)
            except ValueError as exc:
                raise RuntimeError(f"SEND_TIMEOUT_SECONDS={raw_timeout!r} is not a number") from exc
            if send_timeout <= 0:
                raise RuntimeError("SEND_TIMEOUT_SECONDS must be greater than zero")

        raw_public = (os.getenv("PUBLIC_DIR") or "").strip()
        public_dir = Path(raw_public).expanduser() if raw_public else cls.public_dir
        if public_dir.exists() and not public_dir.is_dir():
            raise RuntimeError(
                f"PUBLIC_DIR={raw_public!r} points to a file, not a directory ({public_dir})."
            )

        log_level = (os.getenv("LOG_LEVEL") or "").strip().upper() or cls.log_level
        if log_level not in LOG_LEVELS:
            raise RuntimeError(f"LOG_LEVEL={log_level!r} is not a valid logging level")

        return cls(
            host=host,
            port=port,
            send_timeout=send_timeout,
            public_dir=public_dir,
            log_level=log_level,
        )
